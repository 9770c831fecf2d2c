"""Performance instrumentation middleware.

Binds a request id into the structlog context, measures latency and emits
one performance log per request with the cache counter deltas it caused.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from familyspots.core.cache import stats as cache_stats
from familyspots.logger import log_request_performance

REQUEST_ID_HEADER = "x-request-id"
SEARCH_METHOD_HEADER = "x-search-method"


class PerformanceMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in ("/", "/health"):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        before = cache_stats.snapshot()
        status_code: int = 500
        search_method: str | None = None
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            search_method = response.headers.get(SEARCH_METHOD_HEADER)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            delta = cache_stats.diff(before, cache_stats.snapshot())
            structlog.contextvars.unbind_contextvars("request_id")

            log_request_performance(
                request_id=request_id,
                method=request.method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
                search_method=search_method,
                cache_delta=delta,
            )
