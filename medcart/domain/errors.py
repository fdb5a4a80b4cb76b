# medcart/domain/errors.py


class CartError(Exception):
    """Base class for cart domain errors."""


class PromotionNotApplicableError(CartError):
    """Promotion code is unknown or expired; the cart was not changed."""

    def __init__(self, code: str, reason: str = "not applicable"):
        self.code = code
        self.reason = reason
        super().__init__(f"Promotion code {code!r} is {reason}")


class CatalogConfigurationError(CartError):
    """Promotion catalog could not be loaded (bad shape, NaN values, etc.)."""


class CheckoutNotAllowedError(CartError):
    """Cart is empty or a prescription line is missing prescriber/pharmacy."""


class ProductLookupError(CartError):
    """Product catalog did not return a usable product."""
