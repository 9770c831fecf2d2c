"""Background refresh tasks.

Stale values are served immediately and refreshed here. Failures are sunk
into the log and never reach the caller that triggered the refresh.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from familyspots.logger import get_logger

from .logging import log_cache_event

logger = get_logger(__name__)


class BackgroundRefresher:
    def __init__(self, *, namespace: str) -> None:
        self._namespace = namespace
        # Strong references: the event loop only keeps weak ones.
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, fn: Callable[[], Awaitable[Any]]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(fn())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        log_cache_event(namespace=self._namespace, cache_event="background_refresh")
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every pending refresh; errors were already logged."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_cache_event(namespace=self._namespace, cache_event="refresh_failed")
            logger.warning(
                "background_refresh_failed",
                namespace=self._namespace,
                error=str(exc),
                error_type=type(exc).__name__,
            )
