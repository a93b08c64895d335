"""Per-date caches and locks owned by a TimeBlockingService instance."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Generic, Hashable, TypeVar

V = TypeVar("V")


class DateKeyedCache(Generic[V]):
    """Values grouped by date so one mutation can drop everything for that day.

    Keys are (date, extra) pairs; ``invalidate(day)`` removes every entry
    for that day regardless of ``extra``.
    """

    def __init__(self) -> None:
        self._entries: dict[date, dict[Hashable, V]] = {}

    def get(self, day: date, key: Hashable = None) -> V | None:
        return self._entries.get(day, {}).get(key)

    def put(self, day: date, value: V, key: Hashable = None) -> None:
        self._entries.setdefault(day, {})[key] = value

    def invalidate(self, day: date) -> None:
        self._entries.pop(day, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, day: date) -> bool:
        return bool(self._entries.get(day))


class DateLocks:
    """One asyncio.Lock per calendar date.

    Writers to a day are serialized, and readers of that day wait for an
    in-flight write. Several dates are always acquired in ascending order.
    A date's lock is dropped once nobody holds or waits for it, so the map
    only grows with the dates in use.
    """

    def __init__(self) -> None:
        self._locks: dict[date, asyncio.Lock] = {}
        self._users: dict[date, int] = {}

    def _checkout(self, day: date) -> asyncio.Lock:
        lock = self._locks.get(day)
        if lock is None:
            lock = self._locks[day] = asyncio.Lock()
        self._users[day] = self._users.get(day, 0) + 1
        return lock

    def _checkin(self, day: date) -> None:
        self._users[day] -= 1
        if not self._users[day]:
            del self._users[day]
            del self._locks[day]

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, *days: date) -> AsyncIterator[None]:
        ordered = sorted(set(days))
        locks = [self._checkout(d) for d in ordered]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for day in ordered:
                self._checkin(day)
