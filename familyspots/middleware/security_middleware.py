"""Security headers for the JSON API."""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

DOC_PATHS = frozenset({"/docs", "/redoc", "/openapi.json"})

API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https:; "
    "frame-ancestors 'none'"
)


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers; responses without a caching policy get ``no-store``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            DOCS_CSP if request.url.path in DOC_PATHS else API_CSP
        )

        # Search routes publish their own shared-cache policy.
        if "cache-control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

        return response
