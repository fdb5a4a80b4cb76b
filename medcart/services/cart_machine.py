# medcart/services/cart_machine.py
"""
Cart state machine.

``transition(state, command, ...)`` applies exactly one command and returns a
complete new ``CartState``. The input state is never mutated. Commands that
target an unknown line id return the state unchanged.
"""
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List

from medcart.domain import commands as cmd
from medcart.domain.errors import PromotionNotApplicableError
from medcart.domain.models import CartLineItem, CartState, normalize_code
from medcart.services.promotion_catalog import PromotionCatalog
from medcart.utils.logging import get_logger
from medcart.utils.settings import RECENT_HISTORY_LIMIT

logger = get_logger(__name__)


def new_line_id() -> str:
    return f"cart_{uuid.uuid4().hex[:12]}"


class _Context:
    def __init__(self, catalog: PromotionCatalog, now: datetime, id_factory: Callable[[], str], history_limit: int):
        self.catalog = catalog
        self.now = now
        self.id_factory = id_factory
        self.history_limit = history_limit


def _replace_item(state: CartState, item_id: str, fn) -> CartState:
    if state.find_item(item_id) is None:
        logger.debug(f"Item {item_id} not in cart, ignoring")
        return state

    items = [fn(i) if i.id == item_id else i for i in state.items]
    return state.model_copy(update={"items": items})


def _push_recent(recent: List[str], product_id: str, limit: int) -> List[str]:
    return ([product_id] + [p for p in recent if p != product_id])[:limit]


def _add_item(state: CartState, command: cmd.AddItem, ctx: _Context) -> CartState:
    incoming = command.item
    existing = next(
        (i for i in state.items if i.product_id == incoming.product_id and i.dosage == incoming.dosage),
        None,
    )

    if existing:
        merged = existing.model_copy(update={"quantity": existing.quantity + incoming.quantity})
        items = [merged.with_total() if i.id == existing.id else i for i in state.items]
    else:
        line = incoming.model_copy(update={"id": ctx.id_factory()}).with_total()
        items = state.items + [line]

    return state.model_copy(update={
        "items": items,
        "recently_added": _push_recent(state.recently_added, incoming.product_id, ctx.history_limit),
    })


def _remove_item(state: CartState, command: cmd.RemoveItem, ctx: _Context) -> CartState:
    removed = state.find_item(command.item_id)
    if removed is None:
        logger.debug(f"Item {command.item_id} not in cart, ignoring")
        return state

    items = [i for i in state.items if i.id != command.item_id]
    recent = state.recently_added
    if not any(i.product_id == removed.product_id for i in items):
        recent = [p for p in recent if p != removed.product_id]

    return state.model_copy(update={"items": items, "recently_added": recent})


def _update_quantity(state: CartState, command: cmd.UpdateQuantity, ctx: _Context) -> CartState:
    if command.quantity <= 0:
        return _remove_item(state, cmd.RemoveItem(item_id=command.item_id), ctx)

    return _replace_item(
        state,
        command.item_id,
        lambda i: i.model_copy(update={"quantity": command.quantity}).with_total(),
    )


def _non_positive(value) -> bool:
    # "0" and 0.0 count too; anything non-numeric is left to validation
    if isinstance(value, bool):
        return False
    try:
        return Decimal(str(value).strip()) <= 0
    except (InvalidOperation, TypeError, ValueError):
        return False


def _update_item(state: CartState, command: cmd.UpdateItem, ctx: _Context) -> CartState:
    updates = {k: v for k, v in command.updates.items() if k not in ("id", "total_price")}

    if "quantity" in updates and _non_positive(updates["quantity"]):
        return _remove_item(state, cmd.RemoveItem(item_id=command.item_id), ctx)

    def merge(item: CartLineItem) -> CartLineItem:
        data = item.model_dump()
        data.update(updates)
        return CartLineItem.model_validate(data).with_total()

    return _replace_item(state, command.item_id, merge)


def _apply_promotion(state: CartState, command: cmd.ApplyPromotion, ctx: _Context) -> CartState:
    code = normalize_code(command.code)
    if code in state.applied_codes:
        return state

    if not ctx.catalog.is_code_applicable(code, ctx.now.date()):
        raise PromotionNotApplicableError(code)

    return state.model_copy(update={"applied_codes": state.applied_codes + [code]})


def _remove_promotion(state: CartState, command: cmd.RemovePromotion, ctx: _Context) -> CartState:
    code = normalize_code(command.code)
    if code not in state.applied_codes:
        return state
    return state.model_copy(update={"applied_codes": [c for c in state.applied_codes if c != code]})


def _set_shipping_method(state: CartState, command: cmd.SetShippingMethod, ctx: _Context) -> CartState:
    return _replace_item(
        state,
        command.item_id,
        lambda i: i.model_copy(update={"shipping_method": command.method}),
    )


def _toggle_subscription(state: CartState, command: cmd.ToggleSubscription, ctx: _Context) -> CartState:
    def toggle(item: CartLineItem) -> CartLineItem:
        if item.is_subscription:
            return item.model_copy(update={
                "is_subscription": False,
                "subscription_frequency": None,
                "auto_refill": False,
            })
        return item.model_copy(update={
            "is_subscription": True,
            "subscription_frequency": command.frequency or "monthly",
            "auto_refill": True,
        })

    return _replace_item(state, command.item_id, toggle)


def _toggle_auto_refill(state: CartState, command: cmd.ToggleAutoRefill, ctx: _Context) -> CartState:
    return _replace_item(
        state,
        command.item_id,
        lambda i: i.model_copy(update={"auto_refill": not i.auto_refill}),
    )


def _clear_cart(state: CartState, command: cmd.ClearCart, ctx: _Context) -> CartState:
    # loyalty points survive a clear
    return state.model_copy(update={"items": [], "applied_codes": [], "recently_added": []})


_HANDLERS = {
    "ADD_ITEM": _add_item,
    "REMOVE_ITEM": _remove_item,
    "UPDATE_QUANTITY": _update_quantity,
    "UPDATE_ITEM": _update_item,
    "APPLY_PROMOTION": _apply_promotion,
    "REMOVE_PROMOTION": _remove_promotion,
    "SET_SHIPPING_METHOD": _set_shipping_method,
    "TOGGLE_SUBSCRIPTION": _toggle_subscription,
    "TOGGLE_AUTO_REFILL": _toggle_auto_refill,
    "CLEAR_CART": _clear_cart,
}


def transition(
    state: CartState,
    command,
    catalog: PromotionCatalog,
    now: datetime,
    id_factory: Callable[[], str] = new_line_id,
    history_limit: int = RECENT_HISTORY_LIMIT,
) -> CartState:
    """
    Apply one command and return the resulting state.

    Raises PromotionNotApplicableError for unknown or expired codes; the
    caller's state is untouched in that case.
    """
    handler = _HANDLERS.get(command.type)
    if handler is None:
        raise ValueError(f"Unknown cart command: {command.type}")

    ctx = _Context(catalog, now, id_factory, history_limit)
    new_state = handler(state, command, ctx)

    if new_state == state:
        return state
    return new_state.model_copy(update={"version": state.version + 1})
