"""In-memory cache with per-entry expiry.

One instance is created per process and handed to every provider that needs
it, so cached upstream responses are never module-level state.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache whose entries expire individually."""

    def __init__(
        self,
        default_ttl_seconds: float = 900,
        stale_retention_seconds: float = 86_400,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl_seconds: Lifetime of entries stored without an explicit TTL
            stale_retention_seconds: How long an expired entry stays readable
                through get_stale before it is evicted
            clock: Time source in seconds (injectable for tests)
        """
        self.default_ttl_seconds = default_ttl_seconds
        self.stale_retention_seconds = stale_retention_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        """Return the value if present and not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            return None
        return value

    def get_stale(self, key: str) -> Any | None:
        """Return the last stored value, ignoring expiry within the retention period."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at + self.stale_retention_seconds:
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value for ttl_seconds (default_ttl_seconds if None)."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._evict_stale(now)
        self._entries[key] = (value, now + ttl)

    def _evict_stale(self, now: float) -> None:
        cutoff = now - self.stale_retention_seconds
        stale = [key for key, (_, expires_at) in self._entries.items() if expires_at <= cutoff]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} stale cache entries")

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry, fresh or stale."""
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
