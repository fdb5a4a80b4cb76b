# medcart/domain/commands.py
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from medcart.domain.models import CartLineItem, ShippingMethod, SubscriptionFrequency


class AddItem(BaseModel):
    type: Literal["ADD_ITEM"] = "ADD_ITEM"
    item: CartLineItem


class RemoveItem(BaseModel):
    type: Literal["REMOVE_ITEM"] = "REMOVE_ITEM"
    item_id: str


class UpdateQuantity(BaseModel):
    type: Literal["UPDATE_QUANTITY"] = "UPDATE_QUANTITY"
    item_id: str
    quantity: int


class UpdateItem(BaseModel):
    type: Literal["UPDATE_ITEM"] = "UPDATE_ITEM"
    item_id: str
    updates: Dict[str, Any] = Field(default_factory=dict)


class ApplyPromotion(BaseModel):
    type: Literal["APPLY_PROMOTION"] = "APPLY_PROMOTION"
    code: str = Field(..., min_length=1)


class RemovePromotion(BaseModel):
    type: Literal["REMOVE_PROMOTION"] = "REMOVE_PROMOTION"
    code: str = Field(..., min_length=1)


class SetShippingMethod(BaseModel):
    type: Literal["SET_SHIPPING_METHOD"] = "SET_SHIPPING_METHOD"
    item_id: str
    method: ShippingMethod


class ToggleSubscription(BaseModel):
    type: Literal["TOGGLE_SUBSCRIPTION"] = "TOGGLE_SUBSCRIPTION"
    item_id: str
    frequency: Optional[SubscriptionFrequency] = None


class ToggleAutoRefill(BaseModel):
    type: Literal["TOGGLE_AUTO_REFILL"] = "TOGGLE_AUTO_REFILL"
    item_id: str


class ClearCart(BaseModel):
    type: Literal["CLEAR_CART"] = "CLEAR_CART"


CartCommand = Annotated[
    Union[
        AddItem,
        RemoveItem,
        UpdateQuantity,
        UpdateItem,
        ApplyPromotion,
        RemovePromotion,
        SetShippingMethod,
        ToggleSubscription,
        ToggleAutoRefill,
        ClearCart,
    ],
    Field(discriminator="type"),
]

command_adapter = TypeAdapter(CartCommand)


def parse_command(payload: dict) -> BaseModel:
    """Build a typed command from a ``{"type": ..., ...}`` payload."""
    return command_adapter.validate_python(payload)
