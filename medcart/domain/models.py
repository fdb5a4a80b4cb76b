# medcart/domain/models.py
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from medcart.utils.settings import STARTING_LOYALTY_POINTS

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

ProductType = Literal["prescription", "otc", "supplement", "device", "bundle"]
SubscriptionFrequency = Literal["weekly", "monthly", "quarterly", "custom"]
ShippingMethod = Literal["standard", "express", "overnight", "pickup"]
PromotionKind = Literal["discount", "bogo", "free_shipping", "bundle", "loyalty", "first_time"]
DiscountType = Literal["percentage", "fixed", "free_item", "shipping"]


def round2(amount: Decimal) -> Decimal:
    """Round a money amount to cents, half away from zero."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _require_finite(value):
    if value is not None and not Decimal(value).is_finite():
        raise ValueError("must be a finite number")
    return value


class CartLineItem(BaseModel):
    """One cart entry: a product/dosage snapshot plus its quantity."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = ""
    product_id: str = Field(..., min_length=1)
    name: str = ""
    generic_name: Optional[str] = None
    brand: Optional[str] = None
    dosage: str = ""
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Field(..., ge=0)
    total_price: Decimal = ZERO
    product_type: ProductType = "otc"
    category: str = ""
    prescription_required: bool = False

    # subscription / refill
    is_subscription: bool = False
    subscription_frequency: Optional[SubscriptionFrequency] = None
    refills_remaining: Optional[int] = None
    max_refills: Optional[int] = None
    auto_refill: bool = False
    next_refill_date: Optional[date] = None

    # bundling
    bundle_id: Optional[str] = None
    bundle_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    bundle_items: List[str] = Field(default_factory=list)

    # prescription
    prescriber_id: Optional[str] = None
    prescriber_name: Optional[str] = None
    pharmacy_id: Optional[str] = None
    pharmacy_name: Optional[str] = None
    days_supply: Optional[int] = None
    instructions: Optional[str] = None

    # shipping & insurance
    shipping_method: ShippingMethod = "standard"
    insurance_covered: bool = False
    coverage_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    copay: Optional[Decimal] = Field(None, ge=0)
    deductible: Optional[Decimal] = Field(None, ge=0)

    # recommendation metadata
    ai_recommended: bool = False
    confidence_score: Optional[float] = None

    @field_validator(
        "unit_price", "bundle_discount_percent", "coverage_rate", "copay", "deductible"
    )
    @classmethod
    def check_finite(cls, v):
        return _require_finite(v)

    def line_total(self) -> Decimal:
        total = self.unit_price * self.quantity
        if self.bundle_discount_percent:
            total = total * (1 - self.bundle_discount_percent / Decimal(100))
        return round2(total)

    def with_total(self) -> "CartLineItem":
        return self.model_copy(update={"total_price": self.line_total()})


class Promotion(BaseModel):
    """Read-only promotion rule loaded from configuration."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: PromotionKind = "discount"
    title: str = ""
    description: str = ""
    discount_type: DiscountType
    value: Decimal = Field(..., ge=0)
    min_purchase: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    applicable_products: List[str] = Field(default_factory=list)
    applicable_categories: List[str] = Field(default_factory=list)
    expiry_date: date
    usage_limit: Optional[int] = None
    user_limit: Optional[int] = None
    code: Optional[str] = None
    auto_apply: bool = False
    priority: int = 0

    @field_validator("value", "min_purchase", "max_discount")
    @classmethod
    def check_finite(cls, v):
        return _require_finite(v)

    @field_validator("code")
    @classmethod
    def normalize(cls, v):
        return normalize_code(v) if v else None

    def is_expired(self, today: date) -> bool:
        return today > self.expiry_date


class CartState(BaseModel):
    """Complete cart state; the unit that is persisted and transitioned."""

    items: List[CartLineItem] = Field(default_factory=list)
    applied_codes: List[str] = Field(default_factory=list)
    recently_added: List[str] = Field(default_factory=list)
    loyalty_points: int = STARTING_LOYALTY_POINTS
    version: int = 0

    def find_item(self, item_id: str) -> Optional[CartLineItem]:
        return next((i for i in self.items if i.id == item_id), None)


class CartSummary(BaseModel):
    subtotal: Decimal = ZERO
    discounts: Decimal = ZERO
    shipping: Decimal = ZERO
    tax: Decimal = ZERO
    insurance: Decimal = ZERO
    copays: Decimal = ZERO
    total_savings: Decimal = ZERO
    final_total: Decimal = ZERO
    estimated_delivery: str = "3-5 days"
    loyalty_points_earned: int = 0
    applied_promotions: List[str] = Field(default_factory=list)


def normalize_code(code: str) -> str:
    return code.strip().upper()
