from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol, runtime_checkable


@runtime_checkable
class LockManager(Protocol):
    async def acquire(self, key: str) -> None: ...
    async def release(self, key: str) -> None: ...


class InMemoryLockManager:
    """Advisory per-key lock for a single process.

    Waiters poll until the key is free. Offers no exclusion across service
    instances; swap in a shared-store implementation for that.
    """

    def __init__(self, *, poll_interval_seconds: float = 0.1):
        self._poll_interval_seconds = poll_interval_seconds
        self._held: set[str] = set()

    def is_held(self, key: str) -> bool:
        return key in self._held

    async def acquire(self, key: str) -> None:
        while key in self._held:
            await asyncio.sleep(self._poll_interval_seconds)
        # No await between the check above and the claim below.
        self._held.add(key)

    async def release(self, key: str) -> None:
        self._held.discard(key)


@asynccontextmanager
async def hold(manager: LockManager, key: str) -> AsyncIterator[None]:
    await manager.acquire(key)
    try:
        yield
    finally:
        await manager.release(key)
