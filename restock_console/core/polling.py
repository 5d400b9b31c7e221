"""Background scheduling helpers: polling leases and tracked fire-and-forget tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Optional, Set, Tuple

from .logging_config import get_logger

log = get_logger(__name__)


class PollingLease:
    """Runs ``callback`` every ``interval`` seconds until cancelled.

    The first run happens one interval after start; callers that want an
    immediate fetch trigger it themselves.
    """

    def __init__(self, callback: Callable[[], Awaitable[object]], interval: float, *, name: str = "poll") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._cancelled = False
        self._task: Optional[asyncio.Task] = asyncio.get_running_loop().create_task(self._run(), name=name)

    @property
    def active(self) -> bool:
        return not self._cancelled and self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        return self._interval

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self._interval)
            if self._cancelled:
                break
            try:
                await self._callback()
            except Exception:
                log.exception("Polling callback failed", extra={"lease": self._name})

    def cancel(self) -> None:
        """Stop polling; safe to call more than once."""

        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        log.debug("Polling lease cancelled", extra={"lease": self._name})


def start_polling(callback: Callable[[], Awaitable[object]], interval: float, *, name: str = "poll") -> PollingLease:
    """Start a recurring refresh on the running loop and return its lease."""

    return PollingLease(callback, interval, name=name)


class BackgroundTasks:
    """Holds references to fire-and-forget tasks so they can be awaited or cancelled."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> Tuple[asyncio.Task, ...]:
        return tuple(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, object], *, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait until every task spawned so far (and any they spawn) has finished."""

        while self._tasks:
            await asyncio.gather(*self._tasks)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
