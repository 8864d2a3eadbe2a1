"""Address Lock Table — per-address mutual exclusion for claim and verification writes.

Invariants:
    - At most one holder per address at a time
    - Different addresses never contend
    - Locks live only while someone holds or awaits them (weak references)

Design Decisions:
    - asyncio.Lock over DB row locks: works identically on SQLite and PostgreSQL
      (ADR: single-process uvicorn; cross-process races are caught by the
      version check in IdentityStore.compare_and_update)
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator


class AddressLockTable:
    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @asynccontextmanager
    async def hold(self, address: str) -> AsyncIterator[None]:
        lock = self._locks.get(address)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[address] = lock
        async with lock:
            yield
