"""Price data providers."""

from .coingecko_price import CoinGeckoPriceProvider
from .synthetic import SyntheticHistoryProvider

__all__ = [
    "CoinGeckoPriceProvider",
    "SyntheticHistoryProvider",
]
