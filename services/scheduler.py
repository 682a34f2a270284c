"""
Cancellable fire-and-forget timers keyed by application id.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from services.errors import LoanServiceError

logger = logging.getLogger(__name__)


class DeferredTransitions:
    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(self, key: str, delay: float, callback: Callable[[], Awaitable[None]]) -> None:
        """Run `callback` after `delay` seconds, replacing any timer already set for `key`."""
        self.cancel(key)
        task = asyncio.create_task(self._run(key, delay, callback), name=f"deferred:{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda t, k=key: self._discard(k, t))

    def cancel(self, key: str) -> bool:
        task = self._tasks.get(key)
        if task is None or task is asyncio.current_task():
            return False
        del self._tasks[key]
        if task.done():
            return False
        task.cancel()
        logger.debug("Cancelled deferred transition for %s", key)
        return True

    def pending(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    async def wait(self, key: str) -> None:
        """Block until the timer for `key` has fired (or was cancelled)."""
        task = self._tasks.get(key)
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _discard(self, key: str, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    async def _run(self, key: str, delay: float, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(delay)
        try:
            await callback()
        except LoanServiceError as e:
            logger.warning("Deferred transition for %s rejected: %s", key, e.message)
        except Exception:
            logger.exception("Deferred transition for %s failed", key)
