import gc

import pytest
from pullup.usecases.locks import EventLocks


def test_one_lock_per_event() -> None:
    locks = EventLocks()
    first = locks.for_event(1)
    assert locks.for_event(1) is first
    assert locks.for_event(2) is not first


def test_unused_locks_are_dropped() -> None:
    locks = EventLocks()
    lock = locks.for_event(1)
    assert len(locks._locks) == 1
    del lock
    gc.collect()
    assert len(locks._locks) == 0


@pytest.mark.asyncio
async def test_lock_is_kept_while_held() -> None:
    locks = EventLocks()
    async with locks.for_event(7):
        gc.collect()
        assert 7 in locks._locks
        assert locks.for_event(7).locked()
    gc.collect()
    assert 7 not in locks._locks
