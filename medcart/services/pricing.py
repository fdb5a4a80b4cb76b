# medcart/services/pricing.py
"""
Cart summary calculator.

Pure function of (items, catalog, applied codes, now, config). The summary
is always rebuilt from scratch; nothing here keeps state between calls.
Order of operations matters for the charged amount:

    subtotal -> discounts -> tax on (subtotal - discounts)
             -> + shipping - insurance + copays -> clamp at zero
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from medcart.domain.models import ZERO, CartLineItem, CartSummary, round2
from medcart.services.promotion_catalog import PromotionCatalog
from medcart.utils import settings

# most expensive first
TIER_OVERNIGHT = "overnight"
TIER_EXPRESS = "express"
TIER_STANDARD = "standard"
TIER_FREE = "free"

DELIVERY_ESTIMATES = {
    TIER_OVERNIGHT: "Tomorrow",
    TIER_EXPRESS: "2-3 days",
    TIER_STANDARD: "3-5 days",
    TIER_FREE: "3-5 days",
}


class PricingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tax_rate: Decimal = Decimal(settings.TAX_RATE)
    free_shipping_threshold: Decimal = Decimal(settings.FREE_SHIPPING_THRESHOLD)
    standard_rate: Decimal = Decimal(settings.STANDARD_SHIPPING_RATE)
    express_rate: Decimal = Decimal(settings.EXPRESS_SHIPPING_RATE)
    overnight_rate: Decimal = Decimal(settings.OVERNIGHT_SHIPPING_RATE)
    default_coverage_rate: Decimal = Decimal(settings.DEFAULT_COVERAGE_RATE)
    points_divisor: int = settings.LOYALTY_POINTS_DIVISOR

    def tier_rate(self, tier: str) -> Decimal:
        return {
            TIER_OVERNIGHT: self.overnight_rate,
            TIER_EXPRESS: self.express_rate,
            TIER_STANDARD: self.standard_rate,
        }.get(tier, ZERO)


DEFAULT_CONFIG = PricingConfig()


def calculate_subtotal(items: Iterable[CartLineItem]) -> Decimal:
    # lines are rounded before summing
    return sum((item.line_total() for item in items), ZERO)


def resolve_shipping_tier(items: Sequence[CartLineItem], subtotal: Decimal, config: PricingConfig) -> str:
    """Collapse per-line shipping methods into one cart-level tier."""
    methods = {item.shipping_method for item in items}
    if "overnight" in methods:
        return TIER_OVERNIGHT
    if "express" in methods:
        return TIER_EXPRESS
    if "standard" in methods and subtotal < config.free_shipping_threshold:
        return TIER_STANDARD
    return TIER_FREE


def promotion_discount(promo, subtotal: Decimal) -> Decimal:
    if promo.discount_type == "percentage":
        cap = promo.max_discount if promo.max_discount is not None else subtotal
        return round2(min(subtotal * promo.value / Decimal(100), cap))
    if promo.discount_type == "fixed":
        return round2(promo.value)
    # free_item / shipping are fulfilled elsewhere
    return ZERO


def calculate_insurance(items: Iterable[CartLineItem], config: PricingConfig) -> Decimal:
    total = ZERO
    for item in items:
        if not item.insurance_covered:
            continue
        rate = item.coverage_rate if item.coverage_rate is not None else config.default_coverage_rate
        total += item.unit_price * item.quantity * rate
    return round2(total)


def calculate_summary(
    items: Sequence[CartLineItem],
    catalog: PromotionCatalog,
    applied_codes: Iterable[str],
    now: datetime,
    config: PricingConfig = DEFAULT_CONFIG,
) -> CartSummary:
    if not items:
        return CartSummary()

    subtotal = calculate_subtotal(items)

    eligible = catalog.eligible(subtotal, applied_codes, now.date())
    discounts = sum((promotion_discount(p, subtotal) for p in eligible), ZERO)

    tier = resolve_shipping_tier(items, subtotal, config)
    if any(p.discount_type == "shipping" for p in eligible):
        shipping = ZERO
    else:
        shipping = config.tier_rate(tier)

    insurance = calculate_insurance(items, config)
    copays = round2(sum((item.copay or ZERO for item in items), ZERO))

    # after discounts, before shipping and insurance
    tax = round2((subtotal - discounts) * config.tax_rate)

    final_total = subtotal - discounts + shipping + tax - insurance + copays
    final_total = max(round2(final_total), ZERO)

    return CartSummary(
        subtotal=round2(subtotal),
        discounts=round2(discounts),
        shipping=round2(shipping),
        tax=tax,
        insurance=insurance,
        copays=copays,
        total_savings=round2(discounts + insurance),
        final_total=final_total,
        estimated_delivery=DELIVERY_ESTIMATES[tier],
        loyalty_points_earned=int(final_total // config.points_divisor),
        applied_promotions=[p.id for p in eligible],
    )
