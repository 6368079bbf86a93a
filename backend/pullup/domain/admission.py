from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import BookingStatus, DinnerStatus, OverflowAction
from .aggregates import CapacityAggregates
from .errors import EventFullError
from .event_config import EventConfig
from .slots import resolve_slot

_OVERFLOW_STATUS = {
    OverflowAction.WAITLIST: DinnerStatus.WAITLIST,
    OverflowAction.COCKTAILS: DinnerStatus.COCKTAILS,
    OverflowAction.BOTH: DinnerStatus.COCKTAILS_WAITLIST,
}


@dataclass(frozen=True)
class AdmissionRequest:
    party_size: int
    wants_dinner: bool = False
    dinner_slot: Optional[datetime] = None
    dinner_party_size: Optional[int] = None
    force_confirm: bool = False


@dataclass(frozen=True)
class AdmissionDecision:
    booking_status: BookingStatus
    dinner_status: Optional[DinnerStatus] = None
    dinner_slot: Optional[datetime] = None
    overridden: bool = False


def decide(config: EventConfig, request: AdmissionRequest, aggregates: CapacityAggregates) -> AdmissionDecision:
    """
    Pure admission decision for one booking against the current aggregates.

    The aggregates must already exclude the booking being edited. Raises
    EventFullError when the general pool is full and the event has no waitlist.
    With ``force_confirm`` every capacity check is skipped and the decision is
    marked as overridden.
    """
    if request.party_size <= 0:
        raise ValueError("party_size must be positive")

    if request.force_confirm:
        booking_status = BookingStatus.CONFIRMED
    else:
        booking_status = _decide_booking(config, request.party_size, aggregates)

    dinner_status: Optional[DinnerStatus] = None
    slot: Optional[datetime] = None
    if request.wants_dinner and config.dinner_enabled:
        slot = resolve_slot(config, request.dinner_slot)
        if slot is not None:
            if request.force_confirm:
                dinner_status = DinnerStatus.CONFIRMED
            else:
                seats = request.dinner_party_size or request.party_size
                dinner_status = _decide_dinner(config, booking_status, slot, seats, aggregates)

    return AdmissionDecision(
        booking_status=booking_status,
        dinner_status=dinner_status,
        dinner_slot=slot,
        overridden=request.force_confirm,
    )


def _decide_booking(config: EventConfig, party_size: int, aggregates: CapacityAggregates) -> BookingStatus:
    if config.capacity_total is not None and aggregates.confirmed + party_size > config.capacity_total:
        if config.waitlist_enabled:
            return BookingStatus.WAITLIST
        raise EventFullError("event is full and waitlist is disabled")
    return BookingStatus.CONFIRMED


def _decide_dinner(
    config: EventConfig,
    booking_status: BookingStatus,
    slot: datetime,
    seats: int,
    aggregates: CapacityAggregates,
) -> DinnerStatus:
    assert config.dinner is not None
    max_seats = config.dinner.max_seats_per_slot
    if max_seats is None:
        if booking_status == BookingStatus.CONFIRMED:
            return DinnerStatus.CONFIRMED
        return DinnerStatus.WAITLIST

    taken = aggregates.slot(slot).confirmed
    if booking_status == BookingStatus.CONFIRMED and taken + seats <= max_seats:
        return DinnerStatus.CONFIRMED
    return _OVERFLOW_STATUS[config.dinner.overflow_action]
