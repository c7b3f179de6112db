"""Base classes for price data providers.

Providers are the only components that do I/O. They record an audit entry for
every upstream call and every fallback, and throttle themselves with a
sliding-window rate limiter.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

from ..core.exceptions import CalculatorError
from ..core.models import AuditEntry
from ..core.types import DataSource
from .cache import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Allows at most `calls` acquisitions in any `period` seconds."""

    def __init__(
        self,
        calls: int = 60,
        period: float = 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if calls < 1:
            raise ValueError("calls must be at least 1")
        self.calls = calls
        self.period = period
        self._clock = clock
        self._sleep = sleep
        self._recent: deque[float] = deque()

    def acquire(self) -> float:
        """Block until a call is allowed. Returns the seconds spent waiting."""
        now = self._clock()
        while self._recent and now - self._recent[0] >= self.period:
            self._recent.popleft()

        waited = 0.0
        if len(self._recent) >= self.calls:
            waited = self._recent[0] + self.period - now
            if waited > 0:
                logger.debug(f"Rate limit reached, waiting {waited:.1f}s")
                self._sleep(waited)
            self._recent.popleft()

        self._recent.append(self._clock())
        return max(waited, 0.0)


class BaseProvider(ABC):
    """Abstract base class for all price providers."""

    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(self, rate_limiter: RateLimiter | None = None):
        """
        Args:
            rate_limiter: Throttle for upstream calls (60 calls/minute if None)
        """
        self.rate_limiter = rate_limiter or RateLimiter()
        self._audit_entries: list[AuditEntry] = []

    def _record_audit(
        self,
        action: str,
        endpoint: str | None = None,
        success: bool = True,
        error_message: str | None = None,
        duration_ms: int | None = None,
        notes: str | None = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            source=self.SOURCE,
            action=action,
            endpoint=endpoint,
            success=success,
            error_message=error_message,
            duration_ms=duration_ms,
            notes=notes,
        )
        self._audit_entries.append(entry)
        return entry

    def get_audit_trail(self) -> list[AuditEntry]:
        """Audit entries recorded so far, oldest first."""
        return list(self._audit_entries)

    def clear_audit_trail(self) -> None:
        self._audit_entries.clear()

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider can currently serve data."""

    @abstractmethod
    def get_historical_daily_prices(self, days_back: int) -> list[tuple[date, float]]:
        """Return (day, price) pairs for the last days_back days, oldest first."""


class CachedProvider(BaseProvider):
    """Provider whose upstream responses live in a shared TTLCache."""

    def __init__(
        self,
        cache: TTLCache | None = None,
        cache_ttl_seconds: float = 900,
        rate_limiter: RateLimiter | None = None,
    ):
        """
        Args:
            cache: Cache shared with other components; a private one is
                created when omitted
            cache_ttl_seconds: Lifetime of the entries this provider stores
            rate_limiter: Throttle for upstream calls
        """
        super().__init__(rate_limiter=rate_limiter)
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache = cache if cache is not None else TTLCache(cache_ttl_seconds)

    def _cached_fetch(
        self,
        key: str,
        fetch: Callable[[], T],
        recoverable: tuple[type[CalculatorError], ...],
    ) -> tuple[T, bool]:
        """
        Serve a fresh cached value, else fetch and cache, else a stale value.

        Returns:
            (value, is_stale)

        Raises:
            The fetch error, when it is recoverable but nothing was ever cached
        """
        fresh = self.cache.get(key)
        if fresh is not None:
            logger.debug(f"[{self.SOURCE.value}] Cache hit: {key}")
            return fresh, False

        try:
            value = fetch()
        except recoverable as e:
            stale = self.cache.get_stale(key)
            if stale is None:
                raise
            logger.warning(f"[{self.SOURCE.value}] {e}; serving stale cached {key}")
            self._record_audit(action="fallback", notes=f"stale cache: {key}")
            return stale, True

        self.cache.set(key, value, ttl_seconds=self.cache_ttl_seconds)
        return value, False

    def clear_cache(self) -> None:
        self.cache.clear()
