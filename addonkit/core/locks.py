"""
Per-name mutual exclusion for lifecycle operations.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator


class NameLocks:
    """
    One asyncio.Lock per addon name.

    Operations on the same name run one at a time; different names never
    wait on each other. Locks are dropped once nobody holds or awaits them.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(name, asyncio.Lock())
        self._users[name] = self._users.get(name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[name] -= 1
            if self._users[name] == 0:
                del self._users[name]
                del self._locks[name]

    def locked(self, name: str) -> bool:
        lock = self._locks.get(name)
        return lock is not None and lock.locked()
