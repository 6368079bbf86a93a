"""
Booking mutation engine: create, edit, delete and check in RSVPs.

Every admission decision for an event (read aggregates, decide, write) runs under
that event's lock and with the event row locked in storage, so two concurrent
RSVPs can never both see the last free spot. Public functions return an Outcome;
domain errors never escape to the caller.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..domain.admission import AdmissionRequest, decide
from ..domain.aggregates import cocktail_headcount
from ..domain.errors import DuplicateRsvpError, EventNotFoundError, RsvpNotFoundError
from ..domain.event_config import EventConfig
from ..domain.repositories import EventRepository, RsvpRepository
from ..domain.validation import clamp_plus_ones, validate_email
from ..models import BookingStatus, DinnerStatus, Event, Rsvp
from ..schemas import CheckIn, RsvpCreate, RsvpUpdate
from ..utils.audit_log import emit_audit_log
from .locks import event_locks
from .results import Outcome, parse_input, returns_outcome

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 200


@returns_outcome
async def add_rsvp(
    event_repo: EventRepository,
    rsvp_repo: RsvpRepository,
    *,
    slug: str,
    email: Optional[str],
    name: Optional[str] = None,
    plus_ones: Optional[int] = 0,
    wants_dinner: bool = False,
    dinner_slot: Optional[datetime | str] = None,
    dinner_party_size: Optional[int] = None,
) -> Outcome:
    request = parse_input(
        RsvpCreate,
        {
            "email": email,
            "name": name,
            "plus_ones": plus_ones,
            "wants_dinner": wants_dinner,
            "dinner_slot": dinner_slot,
            "dinner_party_size": dinner_party_size,
        },
    )
    event = await event_repo.get_by_slug(slug)
    if event is None:
        raise EventNotFoundError("event not found")
    normalized_email = validate_email(request.email)

    async with event_locks.for_event(event.id):
        event = await _lock_event(event_repo, event.id)
        existing = await rsvp_repo.find_by_email(event.id, normalized_email)
        if existing is not None:
            raise DuplicateRsvpError("you've already RSVP'd to this event", existing=existing)

        config = EventConfig.from_event(event)
        clamped = clamp_plus_ones(request.plus_ones, config.max_plus_ones_per_guest)
        party_size = clamped + 1
        dinner_seats = _dinner_seats(request.dinner_party_size, party_size)
        aggregates = await rsvp_repo.aggregates(event.id)
        decision = decide(
            config,
            AdmissionRequest(
                party_size=party_size,
                wants_dinner=request.wants_dinner,
                dinner_slot=request.dinner_slot,
                dinner_party_size=dinner_seats,
            ),
            aggregates,
        )
        has_dinner = decision.dinner_status is not None
        rsvp = await rsvp_repo.create(
            event_id=event.id,
            email=normalized_email,
            name=_clean_name(request.name),
            plus_ones=clamped,
            booking_status=decision.booking_status,
            wants_dinner=has_dinner,
            dinner_slot=decision.dinner_slot,
            dinner_party_size=dinner_seats if has_dinner else None,
            dinner_status=decision.dinner_status,
            capacity_overridden=False,
        )

    logger.info(
        "rsvp %s created for event %s: %s (dinner=%s)",
        rsvp.id,
        event.id,
        rsvp.booking_status,
        rsvp.dinner_status,
    )
    emit_audit_log(
        action="rsvp.created",
        initiator="guest",
        event_id=event.id,
        rsvp_id=rsvp.id,
        party_size=rsvp.party_size,
        status_to=rsvp.booking_status,
        dinner_status=rsvp.dinner_status,
        dinner_slot=rsvp.dinner_slot,
    )
    return Outcome(event=event, rsvp=rsvp)


@returns_outcome
async def update_rsvp(
    event_repo: EventRepository,
    rsvp_repo: RsvpRepository,
    rsvp_id: int,
    updates: RsvpUpdate | Mapping[str, Any],
    *,
    force_confirm: bool = False,
) -> Outcome:
    """
    Apply a host edit and re-run admission with the edited booking left out of the counts.

    ``force_confirm`` confirms the booking (and its dinner seat) past any limit and
    flags it as overridden. The flag is never cleared. A booking confirmed by an
    override stays confirmed through later edits only while they ask for no more
    guests or dinner seats than it already holds; anything larger goes through normal
    admission. Without the override an edit that no longer fits a full event with no
    waitlist fails with ``full`` and changes nothing.
    """
    edit = parse_input(RsvpUpdate, updates)
    rsvp = await rsvp_repo.get(rsvp_id)
    if rsvp is None:
        raise RsvpNotFoundError("rsvp not found")
    email = validate_email(edit.email) if edit.supplied("email") else rsvp.email

    async with event_locks.for_event(rsvp.event_id):
        event = await _lock_event(event_repo, rsvp.event_id)
        rsvp = await _lock_rsvp(rsvp_repo, rsvp_id)
        if email != rsvp.email:
            clash = await rsvp_repo.find_by_email(event.id, email)
            if clash is not None and clash.id != rsvp.id:
                raise DuplicateRsvpError("another rsvp already uses this email", existing=clash)

        config = EventConfig.from_event(event)
        plus_ones = clamp_plus_ones(
            edit.plus_ones if edit.supplied("plus_ones") else rsvp.plus_ones,
            config.max_plus_ones_per_guest,
        )
        party_size = plus_ones + 1
        wants_dinner = bool(edit.wants_dinner if edit.supplied("wants_dinner") else rsvp.wants_dinner)
        requested_slot = edit.dinner_slot if edit.supplied("dinner_slot") else rsvp.dinner_slot
        dinner_seats = _dinner_seats(
            edit.dinner_party_size if edit.supplied("dinner_party_size") else rsvp.dinner_party_size,
            party_size,
        )
        keeps_override = _keeps_override(
            rsvp,
            party_size=party_size,
            wants_dinner=wants_dinner,
            dinner_slot=requested_slot,
            dinner_seats=dinner_seats,
        )

        aggregates = await rsvp_repo.aggregates(event.id, exclude_id=rsvp.id)
        decision = decide(
            config,
            AdmissionRequest(
                party_size=party_size,
                wants_dinner=wants_dinner,
                dinner_slot=requested_slot,
                dinner_party_size=dinner_seats,
                force_confirm=force_confirm or keeps_override,
            ),
            aggregates,
        )

        status_from = rsvp.booking_status
        has_dinner = decision.dinner_status is not None
        changes: dict[str, Any] = {
            "email": email,
            "plus_ones": plus_ones,
            "party_size": party_size,
            "booking_status": decision.booking_status,
            "wants_dinner": has_dinner,
            "dinner_slot": decision.dinner_slot,
            "dinner_status": decision.dinner_status,
            "dinner_party_size": dinner_seats if has_dinner else None,
            "capacity_overridden": rsvp.capacity_overridden or force_confirm,
        }
        if edit.supplied("name"):
            changes["name"] = _clean_name(edit.name)
        changes.update(_arrivals(rsvp, changes))
        rsvp = await rsvp_repo.save(rsvp, changes)

    emit_audit_log(
        action="rsvp.capacity_overridden" if force_confirm else "rsvp.updated",
        initiator="host",
        event_id=event.id,
        rsvp_id=rsvp.id,
        party_size=rsvp.party_size,
        status_from=status_from,
        status_to=rsvp.booking_status,
        dinner_status=rsvp.dinner_status,
        dinner_slot=rsvp.dinner_slot,
        capacity_overridden=rsvp.capacity_overridden,
    )
    return Outcome(event=event, rsvp=rsvp)


@returns_outcome
async def delete_rsvp(rsvp_repo: RsvpRepository, rsvp_id: int) -> Outcome:
    rsvp = await rsvp_repo.get(rsvp_id)
    if rsvp is None:
        raise RsvpNotFoundError("rsvp not found")

    async with event_locks.for_event(rsvp.event_id):
        await rsvp_repo.delete(rsvp)

    logger.info("rsvp %s deleted from event %s, %s seats released", rsvp.id, rsvp.event_id, rsvp.party_size)
    emit_audit_log(
        action="rsvp.deleted",
        initiator="host",
        event_id=rsvp.event_id,
        rsvp_id=rsvp.id,
        party_size=rsvp.party_size,
        status_from=rsvp.booking_status,
    )
    return Outcome()


@returns_outcome
async def check_in(
    rsvp_repo: RsvpRepository,
    rsvp_id: int,
    *,
    dinner: int = 0,
    cocktails: int = 0,
) -> Outcome:
    """
    Record arrivals. ``dinner`` and ``cocktails`` are added to the current counts
    (negative values undo a check-in) and the result is kept within the party.
    Waitlisted guests cannot be checked in. Booking status is never touched.
    """
    arrivals = parse_input(CheckIn, {"dinner": dinner, "cocktails": cocktails})
    rsvp = await rsvp_repo.get(rsvp_id)
    if rsvp is None:
        raise RsvpNotFoundError("rsvp not found")

    async with event_locks.for_event(rsvp.event_id):
        rsvp = await _lock_rsvp(rsvp_repo, rsvp_id)
        changes = _arrivals(rsvp, {}, dinner=arrivals.dinner, cocktails=arrivals.cocktails)
        rsvp = await rsvp_repo.save(rsvp, changes)

    emit_audit_log(
        action="rsvp.checked_in",
        initiator="host",
        event_id=rsvp.event_id,
        rsvp_id=rsvp.id,
        party_size=rsvp.party_size,
        extra={
            "dinner_arrived_count": rsvp.dinner_arrived_count,
            "cocktail_arrived_count": rsvp.cocktail_arrived_count,
        },
    )
    return Outcome(rsvp=rsvp)


def arrival_bounds(rsvp: Rsvp, changes: Optional[Mapping[str, Any]] = None) -> tuple[int, int]:
    """Most guests that can be checked in for (dinner, cocktails) once ``changes`` are applied."""
    pending = changes or {}

    def current(field: str) -> Any:
        return pending[field] if field in pending else getattr(rsvp, field)

    if current("booking_status") != BookingStatus.CONFIRMED:
        return 0, 0
    dinner_status = current("dinner_status")
    party_size = current("party_size")
    dinner_bound = 0
    if dinner_status == DinnerStatus.CONFIRMED:
        dinner_bound = current("dinner_party_size") or party_size
    return dinner_bound, cocktail_headcount(dinner_status, current("plus_ones"), party_size)


def _arrivals(rsvp: Rsvp, changes: Mapping[str, Any], *, dinner: int = 0, cocktails: int = 0) -> dict[str, int]:
    dinner_bound, cocktail_bound = arrival_bounds(rsvp, changes)
    return {
        "dinner_arrived_count": max(0, min((rsvp.dinner_arrived_count or 0) + dinner, dinner_bound)),
        "cocktail_arrived_count": max(0, min((rsvp.cocktail_arrived_count or 0) + cocktails, cocktail_bound)),
    }


def _keeps_override(
    rsvp: Rsvp,
    *,
    party_size: int,
    wants_dinner: bool,
    dinner_slot: Optional[datetime],
    dinner_seats: int,
) -> bool:
    if not rsvp.capacity_overridden or rsvp.booking_status != BookingStatus.CONFIRMED:
        return False
    if party_size > rsvp.party_size:
        return False
    if not wants_dinner:
        return True
    return (
        rsvp.dinner_status == DinnerStatus.CONFIRMED
        and dinner_slot == rsvp.dinner_slot
        and dinner_seats <= (rsvp.dinner_party_size or rsvp.party_size)
    )


async def _lock_event(event_repo: EventRepository, event_id: int) -> Event:
    event = await event_repo.get_for_update(event_id)
    if event is None:
        raise EventNotFoundError("event not found")
    return event


async def _lock_rsvp(rsvp_repo: RsvpRepository, rsvp_id: int) -> Rsvp:
    rsvp = await rsvp_repo.get_for_update(rsvp_id)
    if rsvp is None:
        raise RsvpNotFoundError("rsvp not found")
    return rsvp


def _dinner_seats(requested: Optional[int], party_size: int) -> int:
    if requested is None:
        return party_size
    return max(1, requested)


def _clean_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = name.strip()
    return name[:NAME_MAX_LENGTH] or None
