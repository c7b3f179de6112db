"""Tests for the TTL cache."""

from steward_calculator.providers.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    """Tests for TTLCache."""

    def test_get_fresh(self):
        cache = TTLCache(default_ttl_seconds=60, clock=FakeClock())
        cache.set("price", 12.5)
        assert cache.get("price") == 12.5
        assert "price" in cache

    def test_missing_key(self):
        cache = TTLCache()
        assert cache.get("price") is None
        assert cache.get_stale("price") is None

    def test_expiry(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, clock=clock)
        cache.set("price", 12.5)

        clock.now += 59
        assert cache.get("price") == 12.5
        clock.now += 1
        assert cache.get("price") is None
        assert "price" not in cache

    def test_stale_value_survives_expiry(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, clock=clock)
        cache.set("price", 12.5)
        clock.now += 3600

        assert cache.get("price") is None
        assert cache.get_stale("price") == 12.5

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, clock=clock)
        cache.set("short", 1, ttl_seconds=5)
        cache.set("long", 2)
        clock.now += 10

        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_delete_and_clear(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)

        cache.delete("a")
        cache.delete("missing")
        assert cache.get_stale("a") is None
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0
        assert cache.get_stale("b") is None

    def test_instances_are_independent(self):
        first, second = TTLCache(), TTLCache()
        first.set("price", 1.0)
        assert second.get("price") is None

    def test_stale_value_dropped_after_retention(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, stale_retention_seconds=300, clock=clock)
        cache.set("price", 12.5)

        clock.now += 60 + 299
        assert cache.get_stale("price") == 12.5
        clock.now += 1
        assert cache.get_stale("price") is None

    def test_set_evicts_long_expired_entries(self):
        """Keys that change every day do not accumulate forever."""
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, stale_retention_seconds=3600, clock=clock)
        for day in range(30):
            clock.now += 86_400
            cache.set(f"history:{day}", [day])

        assert len(cache) == 1
        assert cache.get_stale("history:29") == [29]

    def test_set_keeps_recently_expired_entries(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl_seconds=60, stale_retention_seconds=3600, clock=clock)
        cache.set("a", 1)
        clock.now += 120
        cache.set("b", 2)

        assert len(cache) == 2
        assert cache.get_stale("a") == 1
