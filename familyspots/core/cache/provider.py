from __future__ import annotations

from familyspots.config import settings

from .codec import detect_codec
from .service import CacheService
from .store import CacheStore
from .types import CacheNamespace, CacheOptions

_cache_service: CacheService | None = None


def build_cache_service() -> CacheService:
    """Construct a cache service from settings; the codec is chosen once here."""
    store = CacheStore(
        capacity=settings.cache_max_entries,
        codec=detect_codec(enabled=settings.cache_compression_enabled),
        compression_threshold_bytes=settings.cache_compression_threshold_bytes,
        namespace="server",
    )
    return CacheService(
        store,
        namespace="server",
        cleanup_interval_seconds=settings.cache_cleanup_interval_seconds,
    )


def get_cache_service() -> CacheService:
    """Get the process cache service; the app lifespan owns init/shutdown."""
    global _cache_service
    if _cache_service is None:
        _cache_service = build_cache_service()
    return _cache_service


def reset_cache_service() -> None:
    global _cache_service
    _cache_service = None


def options_for(namespace: CacheNamespace) -> CacheOptions:
    if namespace == "search":
        return CacheOptions(
            ttl_seconds=settings.cache_search_ttl_seconds,
            stale_while_revalidate_seconds=settings.cache_search_stale_seconds,
            compress=True,
            background_refresh=True,
        )
    if namespace == "spot":
        return CacheOptions(
            ttl_seconds=settings.cache_spot_ttl_seconds,
            stale_while_revalidate_seconds=settings.cache_spot_stale_seconds,
            background_refresh=True,
        )
    if namespace == "event":
        return CacheOptions(
            ttl_seconds=settings.cache_event_ttl_seconds,
            stale_while_revalidate_seconds=settings.cache_event_stale_seconds,
            background_refresh=True,
        )
    if namespace == "http":
        return CacheOptions(
            ttl_seconds=settings.cache_http_ttl_seconds,
            stale_while_revalidate_seconds=settings.cache_http_stale_seconds,
            compress=True,
            background_refresh=True,
        )
    return CacheOptions(ttl_seconds=settings.cache_default_ttl_seconds)
