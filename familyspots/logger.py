"""Structured logging configuration using structlog.

Local runs get one Uvicorn-style line per event; ``production`` emits JSON
lines. Request performance logs carry the search method that served the
request and the cache counters it moved.
"""

import logging
import os
import socket

import structlog

from familyspots.config import settings

_HOSTNAME = socket.gethostname()
_PID = os.getpid()

_JSON_ENVIRONMENTS = frozenset({"production"})


def _format_value(value: object) -> str:
    # cache_delta is {namespace: {cache_event: count}}; flatten it for one line.
    if isinstance(value, dict) and all(isinstance(v, dict) for v in value.values()):
        return ",".join(
            f"{ns}.{ev}={count:+d}"
            for ns, events in value.items()
            for ev, count in events.items()
        )
    return str(value)


def _render_line(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> str:
    """
    Render an event as a single Uvicorn-style line.

    Produces output like:
    INFO:     [host:pid] [planner.py:_full_text:87] fulltext_search_failed kind=spot error=...
    """
    level = event_dict.pop("level", "info").upper()
    event = event_dict.pop("event", "")

    filename = event_dict.pop("filename", None)
    func_name = event_dict.pop("func_name", None)
    lineno = event_dict.pop("lineno", None)

    prefix = f"{level}:     [{_HOSTNAME}:{_PID}]"
    if filename:
        prefix = f"{prefix} [{filename}:{func_name}:{lineno}]"

    context = " ".join(f"{k}={_format_value(v)}" for k, v in event_dict.items())
    return f"{prefix} {event} {context}" if context else f"{prefix} {event}"


def _processors(*, json_output: bool, with_callsite: bool) -> list:
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if with_callsite:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                },
                additional_ignores=["familyspots.logger"],
            )
        )
    if json_output:
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ]
        )
    else:
        processors.append(_render_line)
    return processors


def setup_logging() -> None:
    """Configure structlog for the application.

    Uvicorn's own access log is switched off: AccessLogMiddleware writes one
    line per request with the search method attached.
    """
    log_level = logging.DEBUG if settings.debug else logging.INFO

    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers = []
    uvicorn_access.propagate = False
    uvicorn_access.disabled = True

    structlog.configure(
        processors=_processors(
            json_output=settings.environment in _JSON_ENVIRONMENTS,
            with_callsite=settings.debug,
        ),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def _outcome_from_status(status_code: int) -> str:
    if 200 <= status_code < 400:
        return "success"
    if 400 <= status_code < 500:
        return "client_error"
    return "server_error"


def _cache_outcome(cache_delta: dict | None) -> str | None:
    """Summarise how the cache served a request: hit, stale, miss or none."""
    if not cache_delta:
        return None
    seen: set[str] = set()
    for events in cache_delta.values():
        seen.update(ev for ev, count in events.items() if count > 0)
    for outcome in ("miss", "stale", "hit"):
        if outcome in seen:
            return outcome
    return None


def log_request_performance(
    *,
    request_id: str,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    search_method: str | None = None,
    cache_delta: dict | None = None,
) -> None:
    """Emit one ``request_perf`` event; log-only, no response mutations."""
    logger = get_logger("familyspots.performance")
    payload: dict[str, object] = {
        "request_id": request_id,
        "method": method,
        "path": path,
        "status": status_code,
        "outcome": _outcome_from_status(status_code),
        "duration_ms": round(duration_ms, 3),
    }
    if search_method:
        payload["search_method"] = search_method
    cache_outcome = _cache_outcome(cache_delta)
    if cache_outcome:
        payload["cache"] = cache_outcome
    if cache_delta:
        payload["cache_delta"] = cache_delta

    logger.info("request_perf", **payload)
