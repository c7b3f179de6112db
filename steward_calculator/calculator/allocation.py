"""Token allocation formulas.

All calculations use explicit formulas:
- Token allocation = annual_compensation / average_price
- Current value = total_tokens × average_price
- Price change = (current - previous) / previous × 100
"""

from .validation import validate_price


def calc_token_allocation(annual_compensation: float, average_price: float) -> float:
    """
    Calculate the tokens granted for a USD compensation.

    Formula: tokens = annual_compensation / average_price

    Args:
        annual_compensation: Compensation in USD
        average_price: Window average token price in USD

    Returns:
        Number of tokens

    Raises:
        InvalidPriceError: If the average price fails the sanity bound
        ValueError: If the compensation is negative
    """
    if annual_compensation < 0:
        raise ValueError("annual_compensation must be non-negative")
    average_price = validate_price(average_price, field="average_price")
    return annual_compensation / average_price


def calc_current_value(total_tokens: float, average_price: float) -> float:
    """
    Calculate the USD value of a token amount.

    Formula: value = total_tokens × average_price
    """
    return total_tokens * average_price


def calc_price_change(current_price: float, previous_price: float) -> float:
    """
    Calculate percentage change between two prices.

    Formula: change = (current - previous) / previous × 100

    Returns:
        Percentage change, or 0.0 when the previous price is zero
    """
    if previous_price == 0:
        return 0.0
    return (current_price - previous_price) / previous_price * 100
