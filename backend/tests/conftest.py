import weakref
from datetime import datetime
from typing import Any, Awaitable, Callable

import pytest
from pullup.infrastructure.memory import InMemoryEventRepository, InMemoryRsvpRepository
from pullup.models import Event
from pullup.schemas import EventCreate
from pullup.usecases import events as event_uc
from pullup.usecases import locks

DINNER_START = datetime(2026, 12, 31, 18, 0)
DINNER_END = datetime(2026, 12, 31, 22, 0)


@pytest.fixture(autouse=True)
def fresh_event_locks(monkeypatch: pytest.MonkeyPatch) -> None:
    # asyncio.Lock binds to the loop it first waits on; each test gets its own loop.
    monkeypatch.setattr(locks.event_locks, "_locks", weakref.WeakValueDictionary())


@pytest.fixture
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def rsvp_repo() -> InMemoryRsvpRepository:
    return InMemoryRsvpRepository()


@pytest.fixture
def make_event(event_repo: InMemoryEventRepository) -> Callable[..., Awaitable[Event]]:
    async def _make(**overrides: Any) -> Event:
        fields: dict[str, Any] = {
            "title": "Launch Party",
            "starts_at": datetime(2026, 12, 31, 17, 0),
            "waitlist_enabled": True,
            "max_plus_ones_per_guest": 3,
        }
        if overrides.pop("with_dinner", False):
            fields.update(
                dinner_enabled=True,
                dinner_window_start=DINNER_START,
                dinner_window_end=DINNER_END,
                dinner_seating_interval_hours=2,
            )
        fields.update(overrides)
        return await event_uc.create_event(event_repo, EventCreate(**fields))

    return _make
