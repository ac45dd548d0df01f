"""In-memory caching of parse results.

Parsing is deterministic: the same text, filename and parser configuration
always produce the same :class:`~yang_schema_api.models.ParseResult`. Editors
re-submit unchanged documents constantly (every keystroke in a neighbouring
file triggers a batch re-parse), so results are memoized here.

Design goals:
    1. Deterministic keys: md5 of the content, filename and configuration.
    2. Predictable invalidation: TTL expiry, oldest-first eviction past
       ``max_entries``, explicit ``clear``.
    3. Observability: hits, misses and evictions are reported to the
       performance monitor when monitoring is enabled.

Quick example::

    from yang_schema_api.cache import ResultCache
    cache = ResultCache(default_ttl=5)
    key = cache.make_key(text, "example.yang", "cfg")
    cache.set(key, result)
    assert cache.get(key) is result
"""

from __future__ import annotations

import hashlib
import sys
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .monitoring import PerformanceMonitor, get_monitor


@dataclass
class CacheEntry:
    """Cache entry with TTL."""

    data: Any
    timestamp: float = field(default_factory=time.time)
    ttl: float = 300.0

    def is_expired(self) -> bool:
        """Check if cache entry has expired."""
        return time.time() - self.timestamp > self.ttl


class ResultCache:
    """Thread-safe TTL cache for parse results.

    Notes:
        * Entries are kept in insertion order; when ``max_entries`` is
          exceeded the oldest entry is evicted.
        * Memory footprint estimation is approximate (shallow object sizes).
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_entries: int = 256,
        enable_monitoring: bool = True,
        monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.enable_monitoring = enable_monitoring
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._monitor = (monitor or get_monitor()) if enable_monitoring else None

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Create cache key from arguments."""
        hasher = hashlib.md5()
        for part in parts:
            hasher.update(str(part).encode("utf-8"))
            hasher.update(b"\x00")
        return hasher.hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Retrieve a value if present and not expired.

        Side Effects:
            Emits hit/miss metrics when monitoring enabled.
        """
        start_time = time.time()
        with self._lock:
            entry = self._cache.get(key)
            expired = entry is not None and entry.is_expired()
            if expired:
                del self._cache[key]

        if entry is None or expired:
            if self._monitor:
                self._monitor.record_cache_miss(time.time() - start_time)
                if expired:
                    self._monitor.record_cache_eviction()
            return None

        if self._monitor:
            self._monitor.record_cache_hit(time.time() - start_time)
        return entry.data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Insert or replace a value, evicting the oldest entries past capacity."""
        evicted = 0
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(data=data, ttl=ttl or self.default_ttl)
            while len(self._cache) > self.max_entries:
                self._cache.popitem(last=False)
                evicted += 1
            size = len(self._cache)

        if self._monitor:
            for _ in range(evicted):
                self._monitor.record_cache_eviction()
            self._monitor.update_cache_size(size, self._estimate_memory_usage())

    def invalidate(self, key: str) -> None:
        """Remove specific entry from cache."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def _estimate_memory_usage(self) -> float:
        """Estimate memory usage of cache in MB."""
        with self._lock:
            total_size = sys.getsizeof(self._cache)
            for key, entry in self._cache.items():
                total_size += sys.getsizeof(key)
                total_size += sys.getsizeof(entry)
                total_size += sys.getsizeof(entry.data)
        return total_size / (1024 * 1024)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get current cache statistics."""
        return {
            "cache_size": len(self._cache),
            "max_entries": self.max_entries,
            "memory_usage_mb": round(self._estimate_memory_usage(), 4),
            "default_ttl": self.default_ttl,
            "monitoring_enabled": self.enable_monitoring,
        }
