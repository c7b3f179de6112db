"""Tests for provider base classes."""

from datetime import date

import pytest

from steward_calculator.core.exceptions import DataSourceError
from steward_calculator.core.types import DataSource
from steward_calculator.providers.base import CachedProvider, RateLimiter
from steward_calculator.providers.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class CountingProvider(CachedProvider):
    SOURCE = DataSource.MANUAL

    def __init__(self, values, **kwargs):
        super().__init__(**kwargs)
        self.values = list(values)
        self.fetches = 0

    def is_available(self) -> bool:
        return True

    def get_historical_daily_prices(self, days_back: int) -> list[tuple[date, float]]:
        return []

    def fetch(self):
        self.fetches += 1
        value = self.values.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


class TestRateLimiter:
    """Tests for the sliding-window rate limiter."""

    def test_under_limit_does_not_wait(self):
        clock = FakeClock()
        limiter = RateLimiter(calls=3, period=60, clock=clock, sleep=clock.sleep)

        assert [limiter.acquire() for _ in range(3)] == [0.0, 0.0, 0.0]
        assert clock.sleeps == []

    def test_waits_for_oldest_call_to_expire(self):
        clock = FakeClock()
        limiter = RateLimiter(calls=2, period=60, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 10
        limiter.acquire()

        waited = limiter.acquire()

        assert waited == pytest.approx(50.0)
        assert clock.sleeps == [pytest.approx(50.0)]

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(calls=1, period=60, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 61

        assert limiter.acquire() == 0.0

    def test_invalid_calls(self):
        with pytest.raises(ValueError):
            RateLimiter(calls=0)


class TestCachedFetch:
    """Tests for the fresh, fetch, stale lookup order."""

    def test_fresh_value_skips_fetch(self):
        provider = CountingProvider([1.0, 2.0])

        assert provider._cached_fetch("k", provider.fetch, (DataSourceError,)) == (1.0, False)
        assert provider._cached_fetch("k", provider.fetch, (DataSourceError,)) == (1.0, False)
        assert provider.fetches == 1

    def test_stale_value_on_failure(self):
        clock = FakeClock()
        provider = CountingProvider(
            [1.0, DataSourceError("manual", "down")],
            cache=TTLCache(default_ttl_seconds=10, clock=clock),
            cache_ttl_seconds=10,
        )
        provider._cached_fetch("k", provider.fetch, (DataSourceError,))
        clock.now += 11

        assert provider._cached_fetch("k", provider.fetch, (DataSourceError,)) == (1.0, True)
        assert provider.get_audit_trail()[-1].action == "fallback"

    def test_failure_without_cache_raises(self):
        provider = CountingProvider([DataSourceError("manual", "down")])
        with pytest.raises(DataSourceError):
            provider._cached_fetch("k", provider.fetch, (DataSourceError,))

    def test_shared_cache(self):
        cache = TTLCache()
        first = CountingProvider([1.0], cache=cache)
        second = CountingProvider([2.0], cache=cache)

        first._cached_fetch("k", first.fetch, (DataSourceError,))
        assert second._cached_fetch("k", second.fetch, (DataSourceError,)) == (1.0, False)
        assert second.fetches == 0
