from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Hashable


class InFlight:
    """Share one running coroutine between concurrent callers asking for the same key."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task] = {}

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        loop = asyncio.get_running_loop()
        task = self._tasks.get(key)
        if task is None or task.done() or task.get_loop() is not loop:
            task = loop.create_task(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        return await task

    def _forget(self, key: Hashable, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
