from __future__ import annotations

from typing import Any

from familyspots.logger import get_logger

from .background import BackgroundRefresher
from .cleanup import DEFAULT_INTERVAL_SECONDS, CleanupScheduler
from .logging import CacheTimer, log_cache_event
from .singleflight import SingleFlight
from .store import CacheStore
from .types import CacheOptions, RefreshFn

logger = get_logger(__name__)


class CacheService:
    """Stale-while-revalidate cache over a single in-memory store.

    Built once by the process entry point; ``init()`` starts the periodic
    cleanup sweep and ``shutdown()`` stops it and cancels background
    refreshes.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        namespace: str = "server",
        cleanup_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        singleflight: SingleFlight | None = None,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self._singleflight = singleflight or SingleFlight()
        self._background = BackgroundRefresher(namespace=namespace)
        self._cleanup = CleanupScheduler(
            store, interval_seconds=cleanup_interval_seconds, namespace=namespace
        )

    async def init(self) -> None:
        self._cleanup.start()
        logger.info(
            "cache_service_started",
            namespace=self.namespace,
            capacity=self.store.capacity,
            codec=self.store.codec.name,
        )

    async def shutdown(self) -> None:
        await self._cleanup.stop()
        await self._background.shutdown()
        await self._singleflight.cancel_all()
        logger.info("cache_service_stopped", namespace=self.namespace, entries=self.store.size())

    @property
    def cleanup(self) -> CleanupScheduler:
        return self._cleanup

    def get(self, key: str, options: CacheOptions | None = None) -> Any | None:
        options = options or CacheOptions()
        timer = CacheTimer()
        found = self.store.lookup(
            key, stale_while_revalidate_seconds=options.stale_while_revalidate_seconds
        )
        if found is None:
            cache_event = "miss"
        else:
            cache_event = "stale" if found.stale else "hit"
        log_cache_event(
            namespace=self.namespace, cache_event=cache_event, duration_ms=timer.elapsed_ms()
        )
        return None if found is None else found.value

    def set(self, key: str, value: Any, options: CacheOptions | None = None) -> None:
        timer = CacheTimer()
        self.store.set(key, value, options)
        log_cache_event(namespace=self.namespace, cache_event="set", duration_ms=timer.elapsed_ms())

    def delete(self, key: str) -> bool:
        self._singleflight.forget(key)
        removed = self.store.delete(key)
        log_cache_event(namespace=self.namespace, cache_event="delete")
        return removed

    def has(self, key: str) -> bool:
        return self.store.has(key)

    def size(self) -> int:
        return self.store.size()

    def clear(self) -> None:
        self.store.clear()
        self._singleflight.clear()
        log_cache_event(namespace=self.namespace, cache_event="clear")

    def in_flight(self, key: str) -> bool:
        return self._singleflight.in_flight(key)

    async def wait_for_background(self) -> None:
        await self._background.drain()

    async def get_or_refresh[T](
        self,
        key: str,
        refresh: RefreshFn[T],
        options: CacheOptions | None = None,
    ) -> T:
        options = options or CacheOptions()
        found = self.store.lookup(
            key, stale_while_revalidate_seconds=options.stale_while_revalidate_seconds
        )

        if found is not None and not found.stale:
            log_cache_event(namespace=self.namespace, cache_event="hit")
            return found.value

        if found is not None and options.background_refresh:
            log_cache_event(namespace=self.namespace, cache_event="stale")
            self._background.spawn(
                lambda: self._singleflight.do(
                    key, lambda: self._execute_refresh(key, refresh, options)
                )
            )
            return found.value

        log_cache_event(
            namespace=self.namespace, cache_event="miss" if found is None else "stale"
        )
        try:
            return await self._singleflight.do(
                key, lambda: self._execute_refresh(key, refresh, options)
            )
        except Exception as exc:
            if found is None:
                raise
            logger.warning(
                "cache_refresh_failed_serving_stale",
                namespace=self.namespace,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            log_cache_event(namespace=self.namespace, cache_event="fallback")
            return found.value

    async def _execute_refresh[T](self, key: str, refresh: RefreshFn[T], options: CacheOptions) -> T:
        timer = CacheTimer()
        value = await refresh()
        self.store.set(key, value, options)
        log_cache_event(
            namespace=self.namespace, cache_event="refresh", duration_ms=timer.elapsed_ms()
        )
        return value
