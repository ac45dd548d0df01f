"""Tests for performance monitoring."""

from yang_schema_api.monitoring import PerformanceMonitor, get_monitor, initialize_monitor


def test_record_parse_statistics():
    monitor = PerformanceMonitor()
    monitor.record_parse("primary", valid=True, duration=0.002)
    monitor.record_parse("fallback", valid=False, duration=0.004, fallback_attempted=True)

    parsing = monitor.get_performance_summary()["parsing"]
    assert parsing["documents"] == 2
    assert parsing["primary_used"] == 1
    assert parsing["fallback_used"] == 1
    assert parsing["fallback_attempts"] == 1
    assert parsing["invalid_documents"] == 1
    assert parsing["average_parse_time_ms"] == 3.0


def test_endpoint_metrics_and_errors():
    monitor = PerformanceMonitor()
    monitor.record_endpoint_request("POST /api/yang/parse", 0.01, 200)
    monitor.record_endpoint_request("POST /api/yang/parse", 0.03, 400)

    api = monitor.get_performance_summary()["api"]
    assert api["total_requests"] == 2
    top = api["top_endpoints"][0]
    assert top["endpoint"] == "POST /api/yang/parse"
    assert top["requests"] == 2
    assert top["avg_response_time_ms"] == 20.0
    assert top["error_rate"] == 50.0
    assert api["total_recent_errors"] == 1


def test_cache_analytics_recommendations():
    monitor = PerformanceMonitor()
    assert monitor.get_cache_analytics()["recommendations"] == [
        "Cache performance is optimal. No changes recommended."
    ]

    monitor.record_cache_miss()
    monitor.record_cache_miss()
    monitor.record_cache_eviction()
    analytics = monitor.get_cache_analytics()
    assert analytics["performance"]["cache_efficiency"] == "poor"
    assert len(analytics["recommendations"]) == 2


def test_reset_metrics():
    monitor = PerformanceMonitor()
    monitor.record_parse("primary", valid=True)
    monitor.record_cache_hit()
    monitor.record_endpoint_request("GET /health", 0.001)

    monitor.reset_metrics()

    summary = monitor.get_performance_summary()
    assert summary["parsing"]["documents"] == 0
    assert summary["cache"]["hits"] == 0
    assert summary["api"]["total_requests"] == 0


def test_global_monitor_singleton():
    monitor = initialize_monitor()
    assert get_monitor() is monitor
    assert get_monitor() is get_monitor()
