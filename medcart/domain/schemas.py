# medcart/domain/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional

from medcart.domain.models import CartState, CartSummary, ShippingMethod


class ProductIn(BaseModel):
    """Schema for adding a catalog product to the cart."""

    product_id: str = Field(..., min_length=1, description="Catalog product id")
    dosage: str = Field("", description="Variant / dosage, e.g. '20mg'")
    quantity: int = Field(1, gt=0, description="Quantity (must be > 0)")
    shipping_method: Optional[ShippingMethod] = None
    prescriber_id: Optional[str] = None
    pharmacy_id: Optional[str] = None


class CartOut(BaseModel):
    """Schema for the cart (response)."""

    session_id: str
    state: CartState
    summary: CartSummary
    item_count: int
    can_checkout: bool


class CheckoutOut(BaseModel):
    handoff_id: str
    summary: CartSummary


class PromotionOut(BaseModel):
    id: str
    title: str
    description: str
    code: Optional[str] = None
    auto_apply: bool


class PromotionList(BaseModel):
    promotions: List[PromotionOut]
