from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any


class SingleFlight:
    """At most one in-flight task per key.

    Callers that arrive while a task is running await the same task and get
    the same result or the same exception. The handle is dropped as soon as
    the task finishes, whatever the outcome.
    """

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Task[Any]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    async def do[T](self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._calls[key] = task
            task.add_done_callback(partial(self._forget_if_current, key))
        # Shielded so one cancelled waiter does not cancel the shared refresh.
        return await asyncio.shield(task)

    def forget(self, key: str) -> None:
        self._calls.pop(key, None)

    def clear(self) -> None:
        self._calls.clear()

    async def cancel_all(self) -> None:
        tasks = list(self._calls.values())
        self._calls.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._calls)

    def _forget_if_current(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._calls.get(key) is task:
            del self._calls[key]
        if not task.cancelled():
            # Mark the exception retrieved; waiters may all have been cancelled.
            task.exception()
