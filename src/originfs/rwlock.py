"""
Async reader/writer lock guarding the client's in-memory state.

Lookups share the lock; operations that change the path index, the entry
cache or the mutation log hold it exclusively. A waiting writer blocks new
readers so that a stream of lookups cannot starve a mutation.
"""
import asyncio
from contextlib import asynccontextmanager


class AsyncRWLock:

    def __init__(self):
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0
        self._cond = asyncio.Condition()

    @property
    def locked(self) -> bool:
        return self._writer_active or self._readers > 0

    @asynccontextmanager
    async def read_lock(self):
        async with self._cond:
            while self._writer_active or self._writers_waiting:
                await self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write_lock(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers > 0:
                    await self._cond.wait()
            finally:
                self._writers_waiting -= 1
                # Readers re-check writer state; needed when the wait was cancelled.
                self._cond.notify_all()
            self._writer_active = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer_active = False
                self._cond.notify_all()
