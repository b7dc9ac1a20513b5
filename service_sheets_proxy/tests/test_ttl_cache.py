"""
Unit tests for the in-process TTL cache.
"""

import pytest

from service_sheets_proxy.app.cache.ttl_cache import TTLCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestTTLCache:
    """Test cases for TTLCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return TTLCache(ttl_seconds=180, clock=clock)

    def test_missing_key(self, cache):
        assert cache.get("sheet-Answers") is None
        assert cache.is_valid("sheet-Answers") is False
        assert cache.age("sheet-Answers") is None
        assert "sheet-Answers" not in cache

    def test_valid_immediately_after_put(self, cache):
        entry = cache.put("sheet-Answers", ("a", "b"))

        assert cache.is_valid("sheet-Answers") is True
        assert cache.get("sheet-Answers") is entry
        assert entry.data == ("a", "b")
        assert entry.fetched_at == 1000.0

    def test_invalid_after_ttl(self, cache, clock):
        cache.put("sheet-Answers", ())

        clock.advance(179.9)
        assert cache.is_valid("sheet-Answers") is True

        clock.advance(0.1)
        assert cache.is_valid("sheet-Answers") is False

    def test_get_returns_stale_entry(self, cache, clock):
        """Staleness is the caller's decision; get still returns the entry."""
        cache.put("sheet-Answers", ("old",))
        clock.advance(600)

        entry = cache.get("sheet-Answers")

        assert entry is not None
        assert entry.data == ("old",)
        assert cache.age("sheet-Answers") == 600

    def test_put_replaces_entry(self, cache, clock):
        first = cache.put("sheet-Answers", ("old",))
        clock.advance(200)
        second = cache.put("sheet-Answers", ("new",))

        assert second is not first
        assert first.data == ("old",)
        assert cache.get("sheet-Answers") is second
        assert cache.is_valid("sheet-Answers") is True
        assert len(cache) == 1

    def test_keys_are_independent(self, cache, clock):
        cache.put("a", 1)
        clock.advance(100)
        cache.put("b", 2)
        clock.advance(100)

        assert cache.is_valid("a") is False
        assert cache.is_valid("b") is True
        assert len(cache) == 2

    def test_entry_is_immutable(self, cache):
        entry = cache.put("a", 1)

        with pytest.raises(Exception):
            entry.data = 2  # type: ignore[misc]

    def test_stats(self, cache, clock):
        cache.put("a", 1)
        clock.advance(5)

        stats = cache.stats()

        assert stats["entries"] == 1
        assert stats["ttl_seconds"] == 180
        assert stats["keys"]["a"] == {"age_seconds": 5.0, "valid": True}

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_rejects_non_positive_ttl(self, ttl):
        with pytest.raises(ValueError):
            TTLCache(ttl_seconds=ttl)
