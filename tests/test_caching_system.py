"""Tests for the in-memory query cache."""
import pytest

from api.caching_system import CacheKey, QueryCache, cache_result


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(default_ttl=300, clock=clock)


def test_fetches_once_within_ttl(cache, clock):
    calls = []

    def fetch():
        calls.append(1)
        return {"recipes": len(calls)}

    assert cache.get_or_fetch("recipes", fetch) == {"recipes": 1}
    clock.now += 299
    assert cache.get_or_fetch("recipes", fetch) == {"recipes": 1}
    assert len(calls) == 1

    stats = cache.get_stats()
    assert stats.hit_count == 1
    assert stats.miss_count == 1
    assert stats.hit_ratio == 0.5


def test_refetches_after_ttl(cache, clock):
    values = iter(["first", "second"])
    cache.get_or_fetch("key", lambda: next(values))
    clock.now += 300
    assert cache.get_or_fetch("key", lambda: next(values)) == "second"


def test_per_call_ttl(cache, clock):
    cache.set("key", "cached")
    clock.now += 10
    assert cache.get_or_fetch("key", lambda: "fresh", ttl=5) == "fresh"


def test_failed_fetch_is_not_cached(cache):
    def failing():
        raise RuntimeError("backend unavailable")

    with pytest.raises(RuntimeError):
        cache.get_or_fetch("key", failing)

    assert cache.get("key") is None
    assert cache.get_stats().error_count == 1
    assert cache.get_or_fetch("key", lambda: "ok") == "ok"


def test_set_get_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1

    cache.clear("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get("b") is None
    assert cache.get_stats().entry_count == 0


def test_oldest_entries_are_evicted(clock):
    cache = QueryCache(default_ttl=60, max_entries=2, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("c") == 3
    assert cache.get_stats().eviction_count == 1


def test_cache_result_decorator(cache):
    calls = []

    @cache_result(cache, key_prefix="double")
    def double(value):
        calls.append(value)
        return value * 2

    assert double(2) == 4
    assert double(2) == 4
    assert double(3) == 6
    assert calls == [2, 3]


def test_cache_key_format():
    assert str(CacheKey("scale", "abc")) == "scale:v1:abc"
