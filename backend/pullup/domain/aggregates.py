from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from ..models import BookingStatus, DinnerStatus, Rsvp

_DINNER_WAITING = (DinnerStatus.WAITLIST, DinnerStatus.COCKTAILS_WAITLIST)


@dataclass
class SlotCounts:
    confirmed: int = 0
    waitlist: int = 0


@dataclass(frozen=True)
class CapacityAggregates:
    """Party-size sums of an event's bookings at the moment of a decision."""

    confirmed: int = 0
    waitlist: int = 0
    slots: dict[datetime, SlotCounts] = field(default_factory=dict)

    def slot(self, slot_time: datetime) -> SlotCounts:
        return self.slots.get(slot_time, SlotCounts())


def aggregate(rows: Iterable[Rsvp], *, exclude_id: Optional[int] = None) -> CapacityAggregates:
    """
    Recompute totals from the current bookings; nothing is cached between calls.
    ``exclude_id`` leaves out the booking being edited so it does not count against itself.
    """
    confirmed = 0
    waitlist = 0
    slots: dict[datetime, SlotCounts] = {}
    for row in rows:
        if exclude_id is not None and row.id == exclude_id:
            continue
        if row.booking_status == BookingStatus.CONFIRMED:
            confirmed += row.party_size
        elif row.booking_status == BookingStatus.WAITLIST:
            waitlist += row.party_size

        if not row.wants_dinner or row.dinner_slot is None or row.dinner_status is None:
            continue
        seats = row.dinner_party_size or row.party_size
        counts = slots.setdefault(row.dinner_slot, SlotCounts())
        if row.dinner_status == DinnerStatus.CONFIRMED:
            counts.confirmed += seats
        elif row.dinner_status in _DINNER_WAITING:
            counts.waitlist += seats
        # cocktails holds no dinner seat
    return CapacityAggregates(confirmed=confirmed, waitlist=waitlist, slots=slots)


def cocktail_headcount(dinner_status: Optional[DinnerStatus], plus_ones: int, party_size: int) -> int:
    if dinner_status == DinnerStatus.CONFIRMED:
        return plus_ones
    return party_size


def cocktail_only_headcount(row: Rsvp) -> int:
    """Guests of one booking who attend cocktails without a confirmed dinner seat."""
    return cocktail_headcount(row.dinner_status, row.plus_ones, row.party_size)


def cocktails_only_count(rows: Iterable[Rsvp]) -> int:
    return sum(
        cocktail_only_headcount(row)
        for row in rows
        if row.booking_status == BookingStatus.CONFIRMED
    )
