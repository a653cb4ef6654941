"""Supersession of in-flight requests.

A new request under the same key (a chat session, a search client)
cancels the older one, so a stale answer never overwrites a newer one.
Cancellation reaches whatever remote call the older task is awaiting.
"""
import asyncio
from typing import Any, Awaitable, Dict, Hashable, TypeVar
import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class RequestSuperseded(Exception):
    """Raised to the caller whose request was replaced by a newer one."""

    def __init__(self, key: Hashable):
        super().__init__(f"Request superseded: {key}")
        self.key = key


class InflightRequests:
    """Tracks at most one running task per key."""

    def __init__(self):
        self._tasks: Dict[Hashable, "asyncio.Task[Any]"] = {}

    def is_running(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def cancel(self, key: Hashable) -> bool:
        """Cancel the running task for key. Returns True if one was cancelled."""
        task = self._tasks.get(key)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("inflight_request_cancelled", key=str(key))
        return True

    async def run(self, key: Hashable, coro: Awaitable[T]) -> T:
        """Run coro as the current request for key.

        Raises:
            RequestSuperseded: If a newer request for the same key started
                before this one finished
        """
        self.cancel(key)
        task = asyncio.ensure_future(coro)
        self._tasks[key] = task

        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and not (current and current.cancelling()):
                raise RequestSuperseded(key) from None
            raise
        finally:
            if self._tasks.get(key) is task:
                del self._tasks[key]

    def __len__(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())
