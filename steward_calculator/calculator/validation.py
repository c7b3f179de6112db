"""Price sanity checks shared by the calculators and providers."""

import math

from ..core.exceptions import InvalidPriceError
from ..core.models import MAX_REASONABLE_PRICE


def is_valid_price(price: float | None) -> bool:
    """Check that a price is a finite number in (0, MAX_REASONABLE_PRICE)."""
    if price is None or isinstance(price, bool):
        return False
    if not isinstance(price, (int, float)):
        return False
    if math.isnan(price):
        return False
    return 0 < price < MAX_REASONABLE_PRICE


def validate_price(price: float | None, field: str = "price") -> float:
    """
    Return the price as a float, or raise if it fails the sanity bound.

    Args:
        price: Price in USD
        field: Name used in the error message

    Returns:
        The validated price

    Raises:
        InvalidPriceError: If the price is missing, NaN, non-positive or too large
    """
    if is_valid_price(price):
        return float(price)

    if price is None:
        reason = "price is missing"
    elif isinstance(price, bool) or not isinstance(price, (int, float)):
        reason = "price is not a number"
    elif math.isnan(price):
        reason = "price is NaN"
    elif price <= 0:
        reason = "price must be positive"
    else:
        reason = f"price must be below ${MAX_REASONABLE_PRICE:,.0f}"
    raise InvalidPriceError(price, reason, field=field)
