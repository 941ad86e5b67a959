"""Keyed serialization for booking critical sections.

Bookings touching the same principal or room serialize on per-key locks;
bookings on disjoint keys proceed in parallel. Keys are acquired in sorted
order so two requests sharing several keys cannot deadlock.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from uuid import UUID


def principal_key(principal_id: UUID) -> str:
    return f"principal:{principal_id}"


def room_key(room_id: UUID) -> str:
    return f"room:{room_id}"


class KeyedLockManager:
    """Per-key asyncio locks, created on demand and dropped when idle."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        """Hold every lock in ``keys`` for the duration of the block."""
        ordered = sorted(set(keys))
        acquired: list[str] = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                self._waiters[key] = self._waiters.get(key, 0) + 1
                try:
                    await lock.acquire()
                except BaseException:
                    self._release_waiter(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._release_waiter(key)

    def _release_waiter(self, key: str) -> None:
        self._waiters[key] -= 1
        if self._waiters[key] == 0:
            del self._waiters[key]
            del self._locks[key]
