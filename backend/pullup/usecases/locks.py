from __future__ import annotations

import asyncio
import weakref


class EventLocks:
    """
    One asyncio.Lock per event so admission reads and writes for an event never interleave.
    Locks are held weakly: once no coroutine holds or waits on an event's lock it is dropped.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_event(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock


event_locks = EventLocks()
