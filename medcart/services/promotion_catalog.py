# medcart/services/promotion_catalog.py
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from medcart.domain.errors import CatalogConfigurationError
from medcart.domain.models import Promotion, normalize_code
from medcart.utils.logging import get_logger

logger = get_logger(__name__)

_promotions_adapter = TypeAdapter(List[Promotion])


SAMPLE_PROMOTIONS = [
    {
        "id": "first_time_20",
        "kind": "first_time",
        "title": "Welcome Bonus",
        "description": "20% off your first order + free shipping",
        "discount_type": "percentage",
        "value": "20",
        "min_purchase": "50",
        "max_discount": "100",
        "expiry_date": "2027-12-31",
        "auto_apply": True,
        "priority": 1,
    },
    {
        "id": "bundle_save_30",
        "kind": "bundle",
        "title": "Bundle & Save",
        "description": "Extra 30% off when you buy 3+ items",
        "discount_type": "percentage",
        "value": "30",
        "min_purchase": "150",
        "applicable_categories": ["bundles"],
        "expiry_date": "2027-06-30",
        "auto_apply": True,
        "priority": 2,
    },
    {
        "id": "loyalty_free_shipping",
        "kind": "loyalty",
        "title": "Loyalty Reward",
        "description": "Free express shipping for loyalty members",
        "discount_type": "shipping",
        "value": "15.99",
        "expiry_date": "2027-12-31",
        "auto_apply": True,
        "priority": 3,
    },
    {
        "id": "save_10",
        "kind": "discount",
        "title": "$10 Off",
        "description": "$10 off orders over $40",
        "discount_type": "fixed",
        "value": "10",
        "min_purchase": "40",
        "expiry_date": "2027-12-31",
        "code": "SAVE10",
        "auto_apply": False,
        "priority": 4,
    },
    {
        "id": "health_20",
        "kind": "discount",
        "title": "Health Month",
        "description": "20% off wellness orders, up to $50",
        "discount_type": "percentage",
        "value": "20",
        "max_discount": "50",
        "expiry_date": "2027-12-31",
        "code": "HEALTH20",
        "auto_apply": False,
        "priority": 5,
    },
]


class PromotionCatalog:
    """
    Read-only set of promotion rules, kept in configured order.

    Eligibility lives here and only here: a promotion is eligible when it
    auto-applies or its code was applied to the cart, it has not expired,
    and the subtotal reaches its minimum purchase.
    """

    def __init__(self, promotions: Iterable[Promotion] = ()):
        self._promotions = tuple(promotions)

        seen = set()
        for promo in self._promotions:
            if promo.id in seen:
                raise CatalogConfigurationError(f"Duplicate promotion id {promo.id!r}")
            seen.add(promo.id)

    def __iter__(self):
        return iter(self._promotions)

    def __len__(self):
        return len(self._promotions)

    @property
    def promotions(self) -> tuple:
        return self._promotions

    @classmethod
    def from_data(cls, data) -> "PromotionCatalog":
        try:
            promotions = _promotions_adapter.validate_python(data)
        except ValidationError as e:
            raise CatalogConfigurationError(f"Invalid promotion catalog: {e}") from e
        return cls(promotions)

    @classmethod
    def from_file(cls, path) -> "PromotionCatalog":
        path = Path(path)
        logger.info(f"Loading promotion catalog from {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CatalogConfigurationError(f"Cannot read promotion catalog {path}: {e}") from e
        return cls.from_data(data)

    def find_by_code(self, code: str) -> Optional[Promotion]:
        code = normalize_code(code)
        return next((p for p in self._promotions if p.code == code), None)

    def is_code_applicable(self, code: str, today: date) -> bool:
        promo = self.find_by_code(code)
        return promo is not None and not promo.is_expired(today)

    def eligible(self, subtotal: Decimal, applied_codes: Iterable[str], today: date) -> List[Promotion]:
        applied = {normalize_code(c) for c in applied_codes}
        result = []
        for promo in self._promotions:
            if promo.is_expired(today):
                continue
            if not (promo.auto_apply or (promo.code and promo.code in applied)):
                continue
            if subtotal < (promo.min_purchase or 0):
                continue
            result.append(promo)
        return result


def default_catalog() -> PromotionCatalog:
    return PromotionCatalog.from_data(SAMPLE_PROMOTIONS)


def load_catalog(path: Optional[str] = None) -> PromotionCatalog:
    if path:
        return PromotionCatalog.from_file(path)
    return default_catalog()
