"""Data providers for the steward token calculator.

This module contains:
- The shared TTL cache for upstream responses
- The rate limiter and audit trail every provider carries
- Price data providers (CoinGecko, synthetic demo history)
"""

from .base import BaseProvider, CachedProvider, RateLimiter
from .cache import TTLCache

__all__ = ["BaseProvider", "CachedProvider", "RateLimiter", "TTLCache"]
