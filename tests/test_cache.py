"""
Tests for the in-process property cache.
"""

import pytest

from inmobi.services.cache import (
    FEATURED_PROPERTIES,
    NEIGHBORHOODS,
    PROPERTIES,
    PropertyCache,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PropertyCache(ttl_seconds=300, clock=clock)


class TestStores:
    """Basic reads and writes on the named stores."""

    def test_add_and_get(self, cache, clock):
        entry = cache.add_or_update_data(PROPERTIES, "p1", {"id": "p1"})

        assert entry.timestamp == clock.now
        assert cache.get_data(PROPERTIES, "p1").data == {"id": "p1"}
        assert cache.get_data(PROPERTIES, "missing") is None

    def test_overwrite_updates_timestamp(self, cache, clock):
        cache.add_or_update_data(PROPERTIES, "p1", {"price": 1})
        clock.advance(10)
        cache.add_or_update_data(PROPERTIES, "p1", {"price": 2})

        entry = cache.get_data(PROPERTIES, "p1")
        assert entry.data == {"price": 2}
        assert entry.timestamp == clock.now

    def test_stores_are_independent(self, cache):
        cache.add_or_update_data(PROPERTIES, "k", 1)
        cache.add_or_update_data(NEIGHBORHOODS, "k", 2)

        cache.clear_store(PROPERTIES)

        assert cache.get_data(PROPERTIES, "k") is None
        assert cache.get_data(NEIGHBORHOODS, "k").data == 2

    def test_unknown_store(self, cache):
        with pytest.raises(KeyError):
            cache.get_data("nope", "k")

    def test_extra_store(self, clock):
        cache = PropertyCache(ttl_seconds=120, clock=clock, stores=("api",))
        cache.add_or_update_data("api", "k", "v")
        assert cache.get_data("api", "k").data == "v"

    def test_delete_and_clear_all(self, cache):
        cache.add_or_update_data(PROPERTIES, "a", 1)
        cache.add_or_update_data(FEATURED_PROPERTIES, "b", 2)

        assert cache.delete_data(PROPERTIES, "a") is True
        assert cache.delete_data(PROPERTIES, "a") is False

        cache.clear_all()
        assert cache.get_all_data(FEATURED_PROPERTIES) == []


class TestBulkAndRecency:
    def test_bulk_write_keys_by_id(self, cache):
        count = cache.add_or_update_bulk_data(PROPERTIES, [{"id": 1, "t": "a"}, {"id": "2", "t": "b"}])

        assert count == 2
        assert cache.get_data(PROPERTIES, "1").data["t"] == "a"
        assert {entry.key for entry in cache.get_all_data(PROPERTIES)} == {"1", "2"}

    def test_bulk_write_requires_id(self, cache):
        with pytest.raises(ValueError):
            cache.add_or_update_bulk_data(PROPERTIES, [{"title": "no id"}])

    def test_most_recent(self, cache, clock):
        assert cache.get_most_recent_data(PROPERTIES) is None

        cache.add_or_update_data(PROPERTIES, "old", 1)
        clock.advance(5)
        cache.add_or_update_data(PROPERTIES, "new", 2)

        assert cache.get_most_recent_data(PROPERTIES).key == "new"


class TestExpiry:
    def test_needs_refresh_after_ttl(self, cache, clock):
        written = clock.now
        clock.advance(300)
        assert cache.needs_refresh(written) is False
        clock.advance(1)
        assert cache.needs_refresh(written) is True

    def test_custom_max_age(self, cache, clock):
        written = clock.now
        clock.advance(61)
        assert cache.needs_refresh(written, max_age=60) is True

    @pytest.mark.asyncio
    async def test_get_or_fetch_serves_fresh_entries(self, cache, clock):
        calls = []

        async def fetch():
            calls.append(clock.now)
            return {"id": "p1", "version": len(calls)}

        first = await cache.get_or_fetch(PROPERTIES, "p1", fetch)
        clock.advance(120)
        second = await cache.get_or_fetch(PROPERTIES, "p1", fetch)

        assert first == second
        assert len(calls) == 1

        clock.advance(200)
        third = await cache.get_or_fetch(PROPERTIES, "p1", fetch)
        assert third["version"] == 2
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache):
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            return None

        assert await cache.get_or_fetch(PROPERTIES, "gone", fetch) is None
        assert await cache.get_or_fetch(PROPERTIES, "gone", fetch) is None
        assert calls == 2
        assert cache.get_data(PROPERTIES, "gone") is None
