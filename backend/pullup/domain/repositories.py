from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

from ..models import BookingStatus, DinnerStatus, Event, Rsvp
from .aggregates import CapacityAggregates


class EventRepository(Protocol):
    async def get(self, event_id: int) -> Event | None: ...

    async def get_by_slug(self, slug: str) -> Event | None: ...

    async def get_for_update(self, event_id: int) -> Event | None: ...

    async def slugs_with_prefix(self, prefix: str) -> set[str]: ...

    async def create(self, **fields: Any) -> Event: ...

    async def update(self, event: Event, changes: Mapping[str, Any]) -> Event: ...


class RsvpRepository(Protocol):
    async def get(self, rsvp_id: int) -> Rsvp | None: ...

    async def get_for_update(self, rsvp_id: int) -> Rsvp | None: ...

    async def find_by_email(self, event_id: int, email: str) -> Rsvp | None: ...

    async def list_for_event(
        self,
        event_id: int,
        status: Optional[BookingStatus] = None,
    ) -> list[Rsvp]: ...

    async def aggregates(self, event_id: int, *, exclude_id: Optional[int] = None) -> CapacityAggregates: ...

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
    ) -> Rsvp: ...

    async def save(self, rsvp: Rsvp, changes: Mapping[str, Any]) -> Rsvp: ...

    async def delete(self, rsvp: Rsvp) -> None: ...
