from __future__ import annotations

import functools
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.aggregates import CapacityAggregates, SlotCounts
from ..domain.errors import StorageError
from ..domain.repositories import EventRepository, RsvpRepository
from ..models import BookingStatus, DinnerStatus, Event, Rsvp
from ..utils.time import utc_now_naive

T = TypeVar("T")


def _storage_errors(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(method)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StorageError(f"{method.__name__} failed") from exc

    return wrapper


def _apply(row: Any, changes: Mapping[str, Any]) -> None:
    # Assigned inside the savepoint: a dirty row at begin_nested() would autoflush outside it.
    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = utc_now_naive()


class SqlAlchemyEventRepository(EventRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @_storage_errors
    async def get(self, event_id: int) -> Event | None:
        return await self.session.get(Event, event_id)

    @_storage_errors
    async def get_by_slug(self, slug: str) -> Event | None:
        result = await self.session.scalar(select(Event).where(Event.slug == slug))
        return result if isinstance(result, Event) else None

    @_storage_errors
    async def get_for_update(self, event_id: int) -> Event | None:
        # Row lock on the event serializes admission decisions across workers.
        stmt = select(Event).where(Event.id == event_id).with_for_update().execution_options(populate_existing=True)
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Event) else None

    @_storage_errors
    async def slugs_with_prefix(self, prefix: str) -> set[str]:
        rows = await self.session.scalars(select(Event.slug).where(Event.slug.startswith(prefix, autoescape=True)))
        return set(rows.all())

    @_storage_errors
    async def create(self, **fields: Any) -> Event:
        now = utc_now_naive()
        event = Event(**fields, created_at=now, updated_at=now)
        async with self.session.begin_nested():
            self.session.add(event)
        return event

    @_storage_errors
    async def update(self, event: Event, changes: Mapping[str, Any]) -> Event:
        async with self.session.begin_nested():
            _apply(event, changes)
        return event


class SqlAlchemyRsvpRepository(RsvpRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @_storage_errors
    async def get(self, rsvp_id: int) -> Rsvp | None:
        return await self.session.get(Rsvp, rsvp_id)

    @_storage_errors
    async def get_for_update(self, rsvp_id: int) -> Rsvp | None:
        stmt = select(Rsvp).where(Rsvp.id == rsvp_id).with_for_update().execution_options(populate_existing=True)
        result = await self.session.scalar(stmt)
        return result if isinstance(result, Rsvp) else None

    @_storage_errors
    async def find_by_email(self, event_id: int, email: str) -> Rsvp | None:
        result = await self.session.scalar(
            select(Rsvp).where(Rsvp.event_id == event_id, Rsvp.email == email)
        )
        return result if isinstance(result, Rsvp) else None

    @_storage_errors
    async def list_for_event(
        self,
        event_id: int,
        status: Optional[BookingStatus] = None,
    ) -> List[Rsvp]:
        stmt = select(Rsvp).where(Rsvp.event_id == event_id).order_by(Rsvp.created_at, Rsvp.id)
        if status is not None:
            stmt = stmt.where(Rsvp.booking_status == status)
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    @_storage_errors
    async def aggregates(self, event_id: int, *, exclude_id: Optional[int] = None) -> CapacityAggregates:
        conditions = [Rsvp.event_id == event_id]
        if exclude_id is not None:
            conditions.append(Rsvp.id != exclude_id)

        status_stmt = (
            select(Rsvp.booking_status, func.coalesce(func.sum(Rsvp.party_size), 0))
            .where(*conditions)
            .group_by(Rsvp.booking_status)
        )
        totals = {status: int(total) for status, total in (await self.session.execute(status_stmt)).all()}

        seats = func.coalesce(Rsvp.dinner_party_size, Rsvp.party_size)
        slot_stmt = (
            select(Rsvp.dinner_slot, Rsvp.dinner_status, func.coalesce(func.sum(seats), 0))
            .where(
                *conditions,
                Rsvp.wants_dinner.is_(True),
                Rsvp.dinner_slot.is_not(None),
                Rsvp.dinner_status.is_not(None),
            )
            .group_by(Rsvp.dinner_slot, Rsvp.dinner_status)
        )
        slots: dict[datetime, SlotCounts] = {}
        for slot_time, dinner_status, total in (await self.session.execute(slot_stmt)).all():
            counts = slots.setdefault(slot_time, SlotCounts())
            if dinner_status == DinnerStatus.CONFIRMED:
                counts.confirmed += int(total)
            elif dinner_status in (DinnerStatus.WAITLIST, DinnerStatus.COCKTAILS_WAITLIST):
                counts.waitlist += int(total)

        return CapacityAggregates(
            confirmed=totals.get(BookingStatus.CONFIRMED, 0),
            waitlist=totals.get(BookingStatus.WAITLIST, 0),
            slots=slots,
        )

    @_storage_errors
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
        # Each write runs in a savepoint so a failed flush leaves the outer transaction untouched.
        now = utc_now_naive()
        rsvp = Rsvp(
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
        async with self.session.begin_nested():
            self.session.add(rsvp)
        return rsvp

    @_storage_errors
    async def save(self, rsvp: Rsvp, changes: Mapping[str, Any]) -> Rsvp:
        async with self.session.begin_nested():
            _apply(rsvp, changes)
        return rsvp

    @_storage_errors
    async def delete(self, rsvp: Rsvp) -> None:
        async with self.session.begin_nested():
            await self.session.delete(rsvp)
