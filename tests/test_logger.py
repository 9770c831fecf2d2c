import structlog
from structlog.testing import capture_logs

from familyspots.logger import _cache_outcome, _render_line, log_request_performance


def test_request_perf_carries_search_method_and_cache_outcome() -> None:
    with capture_logs() as logs:
        log_request_performance(
            request_id="rid-1",
            method="GET",
            path="/api/v1/search/spots",
            status_code=200,
            duration_ms=4.12345,
            search_method="fulltext",
            cache_delta={"server": {"miss": 1, "refresh": 1}},
        )

    assert len(logs) == 1
    entry = logs[0]
    assert entry["event"] == "request_perf"
    assert entry["search_method"] == "fulltext"
    assert entry["cache"] == "miss"
    assert entry["outcome"] == "success"
    assert entry["duration_ms"] == 4.123


def test_request_perf_omits_empty_fields() -> None:
    with capture_logs() as logs:
        log_request_performance(
            request_id="rid-2",
            method="GET",
            path="/api/v1/spots/x",
            status_code=404,
            duration_ms=1.0,
            cache_delta={},
        )

    entry = logs[0]
    assert entry["outcome"] == "client_error"
    assert "search_method" not in entry
    assert "cache" not in entry
    assert "cache_delta" not in entry


def test_cache_outcome_prefers_miss_over_hit() -> None:
    assert _cache_outcome({"server": {"hit": 2, "miss": 1}}) == "miss"
    assert _cache_outcome({"server": {"stale": 1, "background_refresh": 1}}) == "stale"
    assert _cache_outcome({"server": {"hit": 1}}) == "hit"
    assert _cache_outcome({"server": {"set": 1}}) is None
    assert _cache_outcome(None) is None


def test_line_renderer_flattens_cache_delta() -> None:
    line = _render_line(
        structlog.get_logger(),
        "info",
        {
            "level": "info",
            "event": "request_perf",
            "path": "/api/v1/search/spots",
            "cache_delta": {"server": {"hit": 1}},
        },
    )

    assert line.startswith("INFO:     [")
    assert line.endswith("request_perf path=/api/v1/search/spots cache_delta=server.hit=+1")


def test_line_renderer_includes_callsite_when_present() -> None:
    line = _render_line(
        structlog.get_logger(),
        "warning",
        {
            "level": "warning",
            "event": "fulltext_search_failed",
            "filename": "planner.py",
            "func_name": "_full_text",
            "lineno": 87,
        },
    )

    assert "[planner.py:_full_text:87] fulltext_search_failed" in line
