"""Unit tests for the expiring cache."""

from __future__ import annotations

import pytest

from moegirl_pages.cache import ExpiringCache, doc_key, search_key, structure_key


class FakeClock:
    """Manually advanced time source."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Return a fresh fake clock."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ExpiringCache:
    """Return a cache with a one-minute default lifetime."""
    return ExpiringCache(default_ttl=60, clock=clock)


def test_key_builders() -> None:
    """Keys namespace searches, documents and parsed structures."""
    assert search_key("miku", 5) == "search:miku:5"
    assert doc_key(123) == "doc:123"
    assert structure_key("Miku") == "structure:Miku"


def test_entries_expire_after_ttl(cache: ExpiringCache, clock: FakeClock) -> None:
    """Entries are live until their lifetime has passed."""
    cache.set("a", 1)
    clock.advance(60)
    assert cache.get("a") == 1

    clock.advance(0.5)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_explicit_ttl_overrides_default(cache: ExpiringCache, clock: FakeClock) -> None:
    """A per-entry lifetime wins over the default."""
    cache.set("short", "x", ttl=5)
    assert cache.remaining_ttl("short") == 5

    clock.advance(3)
    assert cache.remaining_ttl("short") == 2
    clock.advance(3)
    assert not cache.has("short")
    assert cache.remaining_ttl("missing") == 0.0


def test_stats_track_hits_and_misses(cache: ExpiringCache) -> None:
    """Hit rate is hits over lookups."""
    cache.set("a", 1)
    cache.get("a")
    cache.get("a")
    cache.get("b")

    stats = cache.stats()

    assert stats.total_entries == 1
    assert stats.cache_hits == 2
    assert stats.cache_misses == 1
    assert stats.hit_rate == pytest.approx(2 / 3)


def test_has_does_not_count_lookups(cache: ExpiringCache) -> None:
    """Presence checks leave the counters untouched."""
    cache.set("a", 1)

    assert cache.has("a")
    assert not cache.has("b")
    assert cache.stats().cache_hits == 0
    assert cache.stats().cache_misses == 0


def test_cleanup_removes_only_expired(cache: ExpiringCache, clock: FakeClock) -> None:
    """Cleanup evicts stale entries and reports how many."""
    cache.set("old", 1, ttl=10)
    cache.set("new", 2, ttl=100)
    clock.advance(20)

    assert cache.cleanup() == 1
    assert cache.keys() == ["new"]


def test_delete_and_clear(cache: ExpiringCache) -> None:
    """Deleting reports presence; clearing also resets counters."""
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")

    assert cache.delete("a") is True
    assert cache.delete("a") is False

    cache.clear()

    assert len(cache) == 0
    assert cache.stats().cache_hits == 0


def test_empty_cache_stats() -> None:
    """No lookups means a zero hit rate rather than a division error."""
    assert ExpiringCache().stats().hit_rate == 0.0


def test_zero_ttl_is_not_replaced_by_default(cache: ExpiringCache, clock: FakeClock) -> None:
    """An explicit zero lifetime expires as soon as time moves on."""
    cache.set("now", "x", ttl=0)

    assert cache.remaining_ttl("now") == 0.0
    clock.advance(0.1)
    assert not cache.has("now")
