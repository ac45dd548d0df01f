"""Performance monitoring for parsing, caching and the HTTP surface.

The monitoring layer aggregates runtime telemetry so other components (REST
endpoints, the parse coordinator, the result cache) can record lightweight
events without embedding metric aggregation logic. Everything is in-process;
no external backend is required.

Collected domains:
        * Parse activity (documents parsed, parser used, fallback attempts and
            substitutions, invalid documents, parse latency)
        * Cache performance (hit/miss ratio, evictions, memory footprint)
        * Endpoint latency & error rates (rolling sample window + aggregates)

Design principles:
        1. Thread safety via a shared re‑entrant lock (`RLock`); batch parsing
             may record from worker threads.
        2. Non-blocking fast path: metric updates avoid heavy computation;
             summaries are computed on demand.
        3. Serialization ready: summaries are primitive-only dictionaries.

Example::

        from yang_schema_api.monitoring import get_monitor
        monitor = get_monitor()
        monitor.record_parse("fallback", valid=False, duration=0.004, fallback_attempted=True)
        monitor.get_performance_summary()["parsing"]["fallback_used"]   # -> 1
"""

from __future__ import annotations

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class ParseMetrics:
    """Aggregate parse statistics.

    Attributes:
        documents: Number of documents parsed (cache hits excluded).
        by_parser: Count of results per ``parser_used`` tag.
        fallback_attempts: Times the fallback parser ran after a primary failure.
        invalid_documents: Results with ``valid=False``.
        total_parse_time: Cumulative parse latency (seconds).
    """

    documents: int = 0
    by_parser: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    fallback_attempts: int = 0
    invalid_documents: int = 0
    total_parse_time: float = 0.0


@dataclass
class CacheMetrics:
    """Aggregate cache performance metrics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_requests: int = 0
    hit_rate: float = 0.0
    average_response_time: float = 0.0
    cache_size: int = 0
    memory_usage_mb: float = 0.0


@dataclass
class EndpointMetrics:
    """Aggregated metrics for a single logical endpoint.

    Attributes:
        total_requests: Count of invocations.
        total_response_time: Cumulative latency (seconds).
        average_response_time: Mean latency (seconds).
        error_count: Number of requests resulting in error (HTTP >= 400).
        error_rate: error_count / total_requests (0..1).
        last_accessed: Datetime of most recent invocation.
        response_times: Rolling window of recent latencies.
    """

    total_requests: int = 0
    total_response_time: float = 0.0
    average_response_time: float = 0.0
    error_count: int = 0
    error_rate: float = 0.0
    last_accessed: Optional[datetime] = None
    response_times: deque = field(default_factory=lambda: deque(maxlen=100))


class PerformanceMonitor:
    """Central coordinator for recording and querying metrics.

    Intended to be shared as a singleton within a process (see
    :func:`get_monitor`).
    """

    def __init__(self, enable_detailed_tracking: bool = True):
        """Initialize performance monitor.

        Args:
            enable_detailed_tracking: If False, skips per-request latency deque
                population to minimize overhead in high-throughput scenarios.
        """
        self.enable_detailed_tracking = enable_detailed_tracking
        self.start_time = datetime.now()
        self._lock = threading.RLock()
        self.parse_metrics = ParseMetrics()
        self.cache_metrics = CacheMetrics()
        self.endpoint_metrics: Dict[str, EndpointMetrics] = defaultdict(EndpointMetrics)
        self.recent_errors: deque = deque(maxlen=100)

    def record_parse(
        self,
        parser_used: str,
        valid: bool,
        duration: float = 0.0,
        fallback_attempted: bool = False,
    ) -> None:
        """Record one completed document parse."""
        with self._lock:
            self.parse_metrics.documents += 1
            self.parse_metrics.by_parser[parser_used] += 1
            self.parse_metrics.total_parse_time += duration
            if fallback_attempted:
                self.parse_metrics.fallback_attempts += 1
            if not valid:
                self.parse_metrics.invalid_documents += 1

    def record_cache_hit(self, response_time: float = 0.0) -> None:
        with self._lock:
            self.cache_metrics.hits += 1
            self.cache_metrics.total_requests += 1
            self._update_cache_metrics(response_time)

    def record_cache_miss(self, response_time: float = 0.0) -> None:
        with self._lock:
            self.cache_metrics.misses += 1
            self.cache_metrics.total_requests += 1
            self._update_cache_metrics(response_time)

    def record_cache_eviction(self) -> None:
        """Record eviction (capacity or TTL driven)."""
        with self._lock:
            self.cache_metrics.evictions += 1

    def update_cache_size(self, cache_size: int, memory_usage_mb: float = 0.0) -> None:
        """Set current cache size and optional memory usage sample."""
        with self._lock:
            self.cache_metrics.cache_size = cache_size
            self.cache_metrics.memory_usage_mb = memory_usage_mb

    def _update_cache_metrics(self, response_time: float) -> None:
        """Update derived cache metrics (hit rate, average response time)."""
        total = self.cache_metrics.total_requests
        if total > 0:
            self.cache_metrics.hit_rate = self.cache_metrics.hits / total

        if response_time > 0:
            current_avg = self.cache_metrics.average_response_time
            self.cache_metrics.average_response_time = (
                current_avg * (total - 1) + response_time
            ) / total

    def record_endpoint_request(
        self, endpoint: str, response_time: float, status_code: int = 200
    ) -> None:
        """Record an API endpoint invocation.

        Args:
            endpoint: Logical endpoint name or path.
            response_time: Time in seconds for handling the request.
            status_code: HTTP status used to compute error rate (>=400 counts as error).
        """
        with self._lock:
            metrics = self.endpoint_metrics[endpoint]
            metrics.total_requests += 1
            metrics.total_response_time += response_time
            metrics.average_response_time = (
                metrics.total_response_time / metrics.total_requests
            )
            metrics.last_accessed = datetime.now()

            if self.enable_detailed_tracking:
                metrics.response_times.append(response_time)

            if status_code >= 400:
                metrics.error_count += 1
                self.recent_errors.append(
                    {
                        "endpoint": endpoint,
                        "status_code": status_code,
                        "timestamp": datetime.now().isoformat(),
                        "response_time": response_time,
                    }
                )
            metrics.error_rate = metrics.error_count / metrics.total_requests

    def get_performance_summary(self) -> Dict[str, Any]:
        """Return consolidated parse, cache and api snapshot."""
        with self._lock:
            parse = self.parse_metrics
            top_endpoints = sorted(
                self.endpoint_metrics.items(),
                key=lambda x: x[1].total_requests,
                reverse=True,
            )[:10]
            return {
                "timestamp": datetime.now().isoformat(),
                "uptime_seconds": round((datetime.now() - self.start_time).total_seconds(), 2),
                "parsing": {
                    "documents": parse.documents,
                    "primary_used": parse.by_parser.get("primary", 0),
                    "fallback_used": parse.by_parser.get("fallback", 0),
                    "fallback_attempts": parse.fallback_attempts,
                    "invalid_documents": parse.invalid_documents,
                    "average_parse_time_ms": round(
                        parse.total_parse_time * 1000 / max(parse.documents, 1), 3
                    ),
                },
                "cache": {
                    "hit_rate": round(self.cache_metrics.hit_rate * 100, 2),
                    "hits": self.cache_metrics.hits,
                    "misses": self.cache_metrics.misses,
                    "evictions": self.cache_metrics.evictions,
                    "cache_size": self.cache_metrics.cache_size,
                },
                "api": {
                    "total_requests": sum(
                        m.total_requests for m in self.endpoint_metrics.values()
                    ),
                    "top_endpoints": [
                        {
                            "endpoint": endpoint,
                            "requests": metrics.total_requests,
                            "avg_response_time_ms": round(
                                metrics.average_response_time * 1000, 2
                            ),
                            "error_rate": round(metrics.error_rate * 100, 2),
                        }
                        for endpoint, metrics in top_endpoints
                    ],
                    "total_recent_errors": len(self.recent_errors),
                },
            }

    def get_cache_analytics(self) -> Dict[str, Any]:
        """Return cache analytics and tuning recommendations."""
        with self._lock:
            hit_rate = self.cache_metrics.hit_rate
            return {
                "performance": {
                    "hit_rate_percent": round(hit_rate * 100, 2),
                    "miss_rate_percent": round((1 - hit_rate) * 100, 2),
                    "average_response_time_ms": round(
                        self.cache_metrics.average_response_time * 1000, 2
                    ),
                    "cache_efficiency": (
                        "excellent"
                        if hit_rate > 0.9
                        else "good" if hit_rate > 0.8 else "fair" if hit_rate > 0.6 else "poor"
                    ),
                },
                "usage": {
                    "total_requests": self.cache_metrics.total_requests,
                    "cache_hits": self.cache_metrics.hits,
                    "cache_misses": self.cache_metrics.misses,
                    "evictions": self.cache_metrics.evictions,
                },
                "memory": {
                    "cache_size_entries": self.cache_metrics.cache_size,
                    "memory_usage_mb": round(self.cache_metrics.memory_usage_mb, 2),
                },
                "recommendations": self._get_cache_recommendations(),
            }

    def _get_cache_recommendations(self) -> List[str]:
        recommendations = []
        if self.cache_metrics.total_requests and self.cache_metrics.hit_rate < 0.5:
            recommendations.append(
                "Cache hit rate is below 50%. Documents rarely repeat; consider a shorter TTL."
            )
        if self.cache_metrics.evictions > self.cache_metrics.hits * 0.1 and self.cache_metrics.evictions:
            recommendations.append(
                "High eviction rate detected. Consider raising max_entries."
            )
        if not recommendations:
            recommendations.append("Cache performance is optimal. No changes recommended.")
        return recommendations

    def reset_metrics(self) -> None:
        """Reset all counters/state (primarily for tests or manual re-baselining)."""
        with self._lock:
            self.parse_metrics = ParseMetrics()
            self.cache_metrics = CacheMetrics()
            self.endpoint_metrics.clear()
            self.recent_errors.clear()
            self.start_time = datetime.now()


_monitor: Optional[PerformanceMonitor] = None


def get_monitor() -> PerformanceMonitor:
    """Return (and lazily initialize) process-wide performance monitor singleton."""
    global _monitor
    if _monitor is None:
        _monitor = PerformanceMonitor()
    return _monitor


def initialize_monitor(enable_detailed_tracking: bool = True) -> PerformanceMonitor:
    """Force initialization / re-initialization of the global monitor."""
    global _monitor
    _monitor = PerformanceMonitor(enable_detailed_tracking)
    return _monitor
