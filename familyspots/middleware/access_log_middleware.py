"""Access log middleware for FastAPI application."""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from familyspots.logger import get_logger

logger = get_logger(__name__)

SEARCH_METHOD_HEADER = "x-search-method"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Access log middleware that logs HTTP requests with timing and content length.

    Produces logs like:
    INFO:     [hostname:pid] http_request client=127.0.0.1:53012 request="GET /api/v1/search/spots?q=park HTTP/1.1" status=200 size=512B duration=4.1ms search_method=fulltext
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        path = request.url.path

        if path in ("/", "/health"):
            return await call_next(request)

        client = f"{request.client.host}:{request.client.port}" if request.client else "-"
        query = request.url.query
        full_path = f"{path}?{query}" if query else path
        http_version = request.scope.get("http_version", "1.1")

        response: Response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        content_length = response.headers.get("content-length")

        payload: dict[str, object] = {
            "client": client,
            "request": f'"{request.method} {full_path} HTTP/{http_version}"',
            "status": response.status_code,
            "size": f"{content_length}B" if content_length else "-",
            "duration": f"{duration_ms:.1f}ms",
        }
        search_method = response.headers.get(SEARCH_METHOD_HEADER)
        if search_method:
            payload["search_method"] = search_method

        logger.info("http_request", **payload)
        return response
