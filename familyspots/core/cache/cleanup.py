from __future__ import annotations

import asyncio
import contextlib

from familyspots.logger import get_logger

from .store import CacheStore

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60


class CleanupScheduler:
    """Periodically reaps hard-expired entries from a store."""

    def __init__(
        self,
        store: CacheStore,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        namespace: str = "default",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._store = store
        self._interval = interval_seconds
        self._namespace = namespace
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"cache-cleanup:{self._namespace}")
        logger.info("cache_cleanup_started", namespace=self._namespace, interval=self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("cache_cleanup_stopped", namespace=self._namespace)

    def run_once(self) -> int:
        removed = self._store.sweep()
        if removed:
            logger.info("cache_cleanup_swept", namespace=self._namespace, removed=removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.run_once()
            except Exception as exc:  # noqa: BLE001 - the sweep loop must survive
                logger.error(
                    "cache_cleanup_failed",
                    namespace=self._namespace,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
