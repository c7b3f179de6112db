"""Calculation module - price averaging, allocation and vesting."""

from .price_series import PriceSeriesBuilder, calculate_average, lookup_from_prices
from .vesting import (
    VestingScheduler,
    next_vesting_milestone,
    tokens_available_at,
    vesting_progress,
)
from .allocation import calc_current_value, calc_price_change, calc_token_allocation
from .validation import is_valid_price, validate_price

__all__ = [
    "PriceSeriesBuilder",
    "calculate_average",
    "lookup_from_prices",
    "VestingScheduler",
    "next_vesting_milestone",
    "tokens_available_at",
    "vesting_progress",
    "calc_current_value",
    "calc_price_change",
    "calc_token_allocation",
    "is_valid_price",
    "validate_price",
]
