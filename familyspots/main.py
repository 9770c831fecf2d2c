"""
FastAPI application for the Family Spots API.

Spot and event search over PostgreSQL with a stale-while-revalidate
response cache in front of it.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psutil
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from familyspots.config import settings
from familyspots.core.cache import get_cache_service
from familyspots.database import dispose_engine
from familyspots.http_client import close_http_client
from familyspots.logger import get_logger, setup_logging
from familyspots.middleware.access_log_middleware import AccessLogMiddleware
from familyspots.middleware.performance_middleware import PerformanceMiddleware
from familyspots.middleware.security_middleware import SecurityMiddleware
from familyspots.routers import api_router
from familyspots.services import reset_web_search_service

VERSION = "0.1.0"


def _format_bytes(num: float) -> str:
    """Return a human-friendly string for a byte count."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if num < 1024:
            return f"{num:.2f} {unit}"
        num /= 1024
    return f"{num:.2f} PB"


def _collect_process_metrics() -> dict:
    """CPU and memory metrics for the current process only."""
    proc = psutil.Process()
    mem_info = proc.memory_info()
    return {
        "pid": proc.pid,
        "cpu_percent": proc.cpu_percent(interval=None),
        "num_threads": proc.num_threads(),
        "memory": {
            "rss_bytes": mem_info.rss,
            "rss_human": _format_bytes(mem_info.rss),
            "memory_percent": round(proc.memory_percent(), 3),
        },
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the cache service lifecycle and release pooled connections on exit."""
    logger = get_logger(__name__)
    logger.info("Starting up Family Spots API", environment=settings.environment)

    cache = get_cache_service()
    await cache.init()

    yield

    logger.info("Shutting down Family Spots API")
    await cache.shutdown()
    reset_web_search_service()
    await close_http_client()
    await dispose_engine()
    logger.info("Family Spots API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()
    logger = get_logger(__name__)

    app = FastAPI(
        title=settings.app_name,
        description="Family outing spot and event search",
        version=VERSION,
        lifespan=lifespan,
    )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_error",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(status_code=500, content={"error": "internal_error"})

    # Middleware executes in reverse order of registration: the access log
    # is added first so it wraps everything else.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(PerformanceMiddleware)

    @app.get("/")
    async def root():
        """Root endpoint - service status."""
        return {
            "status": "running",
            "service": settings.app_name,
            "version": VERSION,
            "process": _collect_process_metrics(),
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "process": _collect_process_metrics()}

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
