"""
Shared HTTP client with connection pooling.

This module provides a centralized httpx.AsyncClient instance
for efficient HTTP connection reuse across the application.
"""

from __future__ import annotations

from typing import Any

import httpx

from familyspots.config import settings
from familyspots.logger import get_logger

logger = get_logger(__name__)

# Global shared HTTP client for outbound requests
_shared_client: httpx.AsyncClient | None = None

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
DEFAULT_LIMITS = httpx.Limits(
    max_connections=100,
    max_keepalive_connections=20,
    keepalive_expiry=30.0,
)


async def get_http_client() -> httpx.AsyncClient:
    """
    Get or create the shared HTTP client.

    Returns:
        httpx.AsyncClient: The shared HTTP client instance
    """
    global _shared_client
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(
            timeout=DEFAULT_TIMEOUT,
            limits=DEFAULT_LIMITS,
            http2=True,
        )
        logger.info(
            "http_client_created",
            max_connections=DEFAULT_LIMITS.max_connections,
            max_keepalive=DEFAULT_LIMITS.max_keepalive_connections,
        )
    return _shared_client


async def close_http_client() -> None:
    """
    Close the shared HTTP client.

    Should be called during application shutdown to release all connections.
    """
    global _shared_client
    if _shared_client is not None and not _shared_client.is_closed:
        await _shared_client.aclose()
        logger.info("http_client_closed")
    _shared_client = None


def create_scoped_client(
    base_url: str,
    timeout: float = 30.0,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create a client bound to one API, e.g. the Family Spots API for FamilySpotsClient.

    Args:
        base_url: Base URL for all requests
        timeout: Request timeout in seconds
        headers: Optional default headers for all requests
        transport: Optional transport override

    Returns:
        httpx.AsyncClient: A new scoped client instance
    """
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout),
        headers=headers or {},
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5, keepalive_expiry=30.0),
        transport=transport,
    )


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = None,
) -> Any:
    """GET a JSON body. Non-2xx responses raise httpx.HTTPStatusError."""
    effective_timeout = (
        settings.http_request_timeout_seconds if timeout_seconds is None else timeout_seconds
    )
    response = await client.get(url, params=params, headers=headers, timeout=effective_timeout)
    response.raise_for_status()
    return response.json()
