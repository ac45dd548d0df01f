"""Tests for result caching."""

import time

from yang_schema_api.cache import CacheEntry, ResultCache
from yang_schema_api.monitoring import PerformanceMonitor


def test_cache_entry_expiration():
    """Test cache entry TTL expiration."""
    entry = CacheEntry(data="test", ttl=0.1)

    assert not entry.is_expired()
    time.sleep(0.2)
    assert entry.is_expired()


def test_result_cache_basic_operations():
    cache = ResultCache(default_ttl=1.0, enable_monitoring=False)

    cache.set("test_key", "test_value")
    assert cache.get("test_key") == "test_value"
    assert cache.get("nonexistent") is None

    cache.invalidate("test_key")
    assert cache.get("test_key") is None

    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0


def test_result_cache_ttl():
    cache = ResultCache(default_ttl=0.1, enable_monitoring=False)

    cache.set("test_key", "test_value")
    assert cache.get("test_key") == "test_value"
    time.sleep(0.2)
    assert cache.get("test_key") is None


def test_oldest_entries_are_evicted_past_capacity():
    monitor = PerformanceMonitor()
    cache = ResultCache(max_entries=2, monitor=monitor)

    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3
    assert monitor.cache_metrics.evictions == 1
    assert monitor.cache_metrics.cache_size == 2


def test_make_key_is_deterministic_and_separates_parts():
    assert ResultCache.make_key("module m {}", "m.yang") == ResultCache.make_key("module m {}", "m.yang")
    assert ResultCache.make_key("ab", "c") != ResultCache.make_key("a", "bc")


def test_hits_and_misses_are_reported():
    monitor = PerformanceMonitor()
    cache = ResultCache(monitor=monitor)

    cache.get("missing")
    cache.set("k", "v")
    cache.get("k")

    assert monitor.cache_metrics.hits == 1
    assert monitor.cache_metrics.misses == 1
    assert monitor.cache_metrics.hit_rate == 0.5


def test_cache_stats():
    cache = ResultCache(default_ttl=5, max_entries=10, enable_monitoring=False)
    cache.set("k", "v")
    stats = cache.get_cache_stats()

    assert stats["cache_size"] == 1
    assert stats["max_entries"] == 10
    assert stats["default_ttl"] == 5
    assert stats["monitoring_enabled"] is False
    assert stats["memory_usage_mb"] >= 0
