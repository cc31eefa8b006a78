"""
Date-keyed debouncing and bounded readiness waits.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from campgrid.core.logging_config import get_logger

logger = get_logger(__name__)


class DebouncedScheduler:
    """
    Runs at most one pending coroutine per key.

    Scheduling a key again before its delay has elapsed cancels the earlier
    task, so only the last trigger in a burst runs. Once a task's delay has
    elapsed it has fired and is no longer cancellable through schedule().
    """

    def __init__(self):
        self._pending: Dict[Any, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()

    def schedule(
        self,
        key: Any,
        delay: float,
        coro_factory: Callable[[], Awaitable[Any]]
    ) -> asyncio.Task:
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, delay, coro_factory))
        self._pending[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, key: Any, delay: float, coro_factory: Callable[[], Awaitable[Any]]):
        await asyncio.sleep(delay)

        # Fired: from here on a newer trigger schedules alongside instead of cancelling
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]

        try:
            return await coro_factory()
        except Exception:
            logger.exception("Debounced task for %s failed", key)
            return None

    def cancel(self, key: Any) -> bool:
        task = self._pending.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled pending task for %s", key)
        return True

    def pending(self, key: Any) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    def cancel_all(self):
        for key in list(self._pending):
            self.cancel(key)

    async def join(self):
        """Wait for every scheduled task, including cancelled ones, to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def wait_for_signal(event: Optional[asyncio.Event], timeout: float) -> bool:
    """
    Wait until the event is set, at most timeout seconds.

    Returns:
        True if the event was set in time (or no event was given), False on timeout
    """
    if event is None or event.is_set():
        return True
    try:
        await asyncio.wait_for(event.wait(), timeout)
        return True
    except asyncio.TimeoutError:
        logger.warning("Data not ready after %.1fs, continuing with cached data", timeout)
        return False
