from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any, List, Mapping, Optional

from ..domain.aggregates import CapacityAggregates, aggregate
from ..domain.repositories import EventRepository, RsvpRepository
from ..models import BookingStatus, DinnerStatus, Event, Rsvp
from ..utils.time import utc_now_naive


def _apply(row: Any, changes: Mapping[str, Any]) -> None:
    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = utc_now_naive()


class InMemoryEventRepository(EventRepository):
    """Dict-backed event store for tests and local runs without a database."""

    def __init__(self) -> None:
        self.events: dict[int, Event] = {}
        self._ids = itertools.count(1)

    async def get(self, event_id: int) -> Event | None:
        return self.events.get(event_id)

    async def get_by_slug(self, slug: str) -> Event | None:
        return next((e for e in self.events.values() if e.slug == slug), None)

    async def get_for_update(self, event_id: int) -> Event | None:
        return self.events.get(event_id)

    async def slugs_with_prefix(self, prefix: str) -> set[str]:
        return {e.slug for e in self.events.values() if e.slug.startswith(prefix)}

    async def create(self, **fields: Any) -> Event:
        now = utc_now_naive()
        event = Event(id=next(self._ids), **fields, created_at=now, updated_at=now)
        self.events[event.id] = event
        return event

    async def update(self, event: Event, changes: Mapping[str, Any]) -> Event:
        _apply(event, changes)
        return event


class InMemoryRsvpRepository(RsvpRepository):
    def __init__(self) -> None:
        self.rsvps: dict[int, Rsvp] = {}
        self._ids = itertools.count(1)

    async def get(self, rsvp_id: int) -> Rsvp | None:
        return self.rsvps.get(rsvp_id)

    async def get_for_update(self, rsvp_id: int) -> Rsvp | None:
        return self.rsvps.get(rsvp_id)

    async def find_by_email(self, event_id: int, email: str) -> Rsvp | None:
        return next(
            (r for r in self.rsvps.values() if r.event_id == event_id and r.email == email),
            None,
        )

    async def list_for_event(
        self,
        event_id: int,
        status: Optional[BookingStatus] = None,
    ) -> List[Rsvp]:
        return [
            r
            for r in self.rsvps.values()
            if r.event_id == event_id and (status is None or r.booking_status == status)
        ]

    async def aggregates(self, event_id: int, *, exclude_id: Optional[int] = None) -> CapacityAggregates:
        return aggregate(await self.list_for_event(event_id), exclude_id=exclude_id)

    async def create(
        self,
        *,
        event_id: int,
        email: str,
        name: Optional[str],
        plus_ones: int,
        booking_status: BookingStatus,
        wants_dinner: bool,
        dinner_slot: Optional[datetime],
        dinner_party_size: Optional[int],
        dinner_status: Optional[DinnerStatus],
        capacity_overridden: bool,
    ) -> Rsvp:
        now = utc_now_naive()
        rsvp = Rsvp(
            id=next(self._ids),
            event_id=event_id,
            email=email,
            name=name,
            plus_ones=plus_ones,
            party_size=plus_ones + 1,
            booking_status=booking_status,
            wants_dinner=wants_dinner,
            dinner_slot=dinner_slot,
            dinner_party_size=dinner_party_size,
            dinner_status=dinner_status,
            capacity_overridden=capacity_overridden,
            dinner_arrived_count=0,
            cocktail_arrived_count=0,
            created_at=now,
            updated_at=now,
        )
        self.rsvps[rsvp.id] = rsvp
        return rsvp

    async def save(self, rsvp: Rsvp, changes: Mapping[str, Any]) -> Rsvp:
        _apply(rsvp, changes)
        self.rsvps[rsvp.id] = rsvp
        return rsvp

    async def delete(self, rsvp: Rsvp) -> None:
        self.rsvps.pop(rsvp.id, None)
