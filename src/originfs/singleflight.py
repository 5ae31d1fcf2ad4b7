"""
Per-key call coalescing.

The first caller for a key starts the fetch as a task owned by the
SingleFlight; every caller, the first included, awaits that task through a
shield. Cancelling one caller therefore never cancels the shared fetch or
the other waiters. Results are not kept once the call completes,
memoization is the caller's business.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class SingleFlight:

    def __init__(self):
        # {key: Task}
        self._calls: Dict[Hashable, asyncio.Future] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._calls

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._calls.get(key)
        if task is not None:
            logger.debug(f"Joining in-flight call for {key!r}")
        else:
            task = asyncio.ensure_future(self._run(key, fn))
            task.add_done_callback(self._retrieve)
            self._calls[key] = task
        return await asyncio.shield(task)

    async def _run(self, key: Hashable, fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fn()
        finally:
            self._calls.pop(key, None)

    @staticmethod
    def _retrieve(task: asyncio.Future) -> None:
        # Mark retrieved so a call whose callers all went away does not log "never retrieved".
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Shared call failed: {task.exception()!r}")
