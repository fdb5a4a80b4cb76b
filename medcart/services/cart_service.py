# medcart/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from pydantic import ValidationError

from medcart.domain.commands import AddItem
from medcart.domain.errors import ProductLookupError
from medcart.domain.models import CartLineItem, CartState, CartSummary
from medcart.repos.cart_repo import CartRepo
from medcart.services.cart_machine import transition
from medcart.services.pricing import DEFAULT_CONFIG, PricingConfig, calculate_summary
from medcart.services.product_client import ProductClient
from medcart.services.promotion_catalog import PromotionCatalog
from medcart.utils.logging import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CartService:
    """
    Session-scoped owner of one cart.

    commands (issue_command, add_product) go through the state machine,
    then the summary is recomputed and the new state persisted.
    queries (get_summary, get_item_*, get_subscriptions, can_checkout) only read.
    """

    def __init__(
        self,
        session_id: str,
        repo: CartRepo,
        catalog: PromotionCatalog,
        product_client: ProductClient | None = None,
        clock: Callable[[], datetime] = utc_now,
        config: PricingConfig = DEFAULT_CONFIG,
    ):
        self.session_id = session_id
        self.repo = repo
        self.catalog = catalog
        self.product_client = product_client
        self.clock = clock
        self.config = config
        self._state = repo.load()

    @property
    def state(self) -> CartState:
        return self._state

    #queries
    def get_summary(self) -> CartSummary:
        return calculate_summary(
            self._state.items,
            self.catalog,
            self._state.applied_codes,
            self.clock(),
            self.config,
        )

    def get_item_count(self) -> int:
        return sum(i.quantity for i in self._state.items)

    def get_item_by_id(self, item_id: str) -> CartLineItem | None:
        return self._state.find_item(item_id)

    def get_subscriptions(self) -> list[CartLineItem]:
        return [i for i in self._state.items if i.is_subscription]

    def can_checkout(self) -> bool:
        items = self._state.items
        return bool(items) and all(
            not i.prescription_required or (i.prescriber_id and i.pharmacy_id)
            for i in items
        )

    #commands
    def issue_command(self, command) -> CartState:
        current = self._state
        now = self.clock()
        new_state = transition(current, command, self.catalog, now)

        if new_state is current:
            logger.debug(f"{command.type} left cart {self.session_id} unchanged")
            return current

        # full recompute, never patched
        summary = calculate_summary(
            new_state.items,
            self.catalog,
            new_state.applied_codes,
            now,
            self.config,
        )
        self._state = new_state
        self.repo.save(new_state)

        logger.info(
            f"Cart {self.session_id} {command.type} -> version {new_state.version}, "
            f"{len(new_state.items)} lines, total {summary.final_total}"
        )
        return new_state

    def add_product(self, product_id: str, dosage: str = "", quantity: int = 1, **overrides) -> CartState:
        """
        Look the product up once and add a price snapshot of it.
        The line is never re-priced from the catalog afterwards.
        """
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        if self.product_client is None:
            raise ProductLookupError("No product catalog configured")

        pdata = self.product_client.fetch_product(product_id, dosage)

        fields = {
            "product_id": str(pdata.get("id", product_id)),
            "name": pdata.get("name", ""),
            "generic_name": pdata.get("generic_name"),
            "brand": pdata.get("brand"),
            "dosage": pdata.get("dosage", dosage),
            "unit_price": Decimal(str(pdata["price"])) if "price" in pdata else None,
            "product_type": pdata.get("product_type", "otc"),
            "category": pdata.get("category", ""),
            "prescription_required": pdata.get("prescription_required", False),
            "insurance_covered": pdata.get("insurance_covered", False),
            "quantity": quantity,
        }
        fields.update(overrides)

        try:
            item = CartLineItem.model_validate(fields)
        except ValidationError as e:
            raise ProductLookupError(f"Product {product_id} returned unusable data: {e}") from e

        return self.issue_command(AddItem(item=item))
