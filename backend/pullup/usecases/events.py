from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..domain.aggregates import cocktails_only_count
from ..domain.errors import EventNotFoundError, InvalidInputError
from ..domain.event_config import EventConfig
from ..domain.repositories import EventRepository, RsvpRepository
from ..domain.slots import generate_dinner_slots
from ..domain.validation import slugify, unique_slug
from ..models import BookingStatus, Event
from ..schemas import EventCreate, EventUpdate
from ..utils.audit_log import emit_audit_log
from .locks import event_locks
from .results import Outcome, parse_input, returns_outcome


async def create_event(event_repo: EventRepository, payload: EventCreate) -> Event:
    base = slugify(payload.title)
    slug = unique_slug(base, await event_repo.slugs_with_prefix(base))
    event = await event_repo.create(slug=slug, **payload.model_dump())
    emit_audit_log(
        action="event.created",
        initiator="host",
        event_id=event.id,
        extra={"slug": event.slug},
    )
    return event


@returns_outcome
async def update_event(
    event_repo: EventRepository,
    event_id: int,
    updates: EventUpdate | Mapping[str, Any],
) -> Outcome:
    """
    Apply a host edit to an event's configuration. The merged result must pass the same
    checks as a new event, otherwise nothing changes and ``invalid_input`` is returned.
    Existing bookings keep their statuses; the new limits apply from the next admission.
    """
    edit = parse_input(EventUpdate, updates)
    async with event_locks.for_event(event_id):
        event = await event_repo.get_for_update(event_id)
        if event is None:
            raise EventNotFoundError("event not found")
        supplied = edit.model_dump(exclude_unset=True)
        current = {field: getattr(event, field) for field in EventCreate.model_fields}
        try:
            merged = EventCreate.model_validate({**current, **supplied})
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]} or supplied)
            raise InvalidInputError(f"invalid {', '.join(fields)}") from exc
        changes = {field: getattr(merged, field) for field in supplied}
        event = await event_repo.update(event, changes)

    emit_audit_log(
        action="event.updated",
        initiator="host",
        event_id=event.id,
        extra={"fields": sorted(changes)},
    )
    return Outcome(event=event)


async def get_event_by_slug(event_repo: EventRepository, *, slug: str) -> Optional[Event]:
    return await event_repo.get_by_slug(slug)


def dinner_slots_for(event: Event) -> List[datetime]:
    return generate_dinner_slots(EventConfig.from_event(event))


async def get_event_counts(rsvp_repo: RsvpRepository, *, event_id: int) -> Dict[str, int]:
    aggregates = await rsvp_repo.aggregates(event_id)
    return {"confirmed": aggregates.confirmed, "waitlist": aggregates.waitlist}


async def get_dinner_slot_counts(rsvp_repo: RsvpRepository, *, event_id: int) -> Dict[datetime, Dict[str, int]]:
    aggregates = await rsvp_repo.aggregates(event_id)
    return {
        slot_time: {"confirmed": counts.confirmed, "waitlist": counts.waitlist}
        for slot_time, counts in aggregates.slots.items()
    }


async def list_dinner_slot_availability(rsvp_repo: RsvpRepository, *, event: Event) -> List[Dict[str, Any]]:
    """Every generated slot with its counts and, when seats are limited, what is left."""
    slots = dinner_slots_for(event)
    if not slots:
        return []
    aggregates = await rsvp_repo.aggregates(event.id)
    max_seats = event.dinner_max_seats_per_slot
    items: List[Dict[str, Any]] = []
    for slot_time in slots:
        counts = aggregates.slot(slot_time)
        items.append(
            {
                "time": slot_time,
                "available": max_seats is None or counts.confirmed < max_seats,
                "remaining": None if max_seats is None else max(max_seats - counts.confirmed, 0),
                "confirmed": counts.confirmed,
                "waitlist": counts.waitlist,
            }
        )
    return items


async def get_event_attendance(rsvp_repo: RsvpRepository, *, event: Event) -> Dict[str, Optional[int]]:
    aggregates = await rsvp_repo.aggregates(event.id)
    cocktail_spots_left: Optional[int] = None
    if event.capacity_cocktail_only is not None:
        confirmed = await rsvp_repo.list_for_event(event.id, BookingStatus.CONFIRMED)
        cocktail_spots_left = max(event.capacity_cocktail_only - cocktails_only_count(confirmed), 0)
    return {
        "confirmed": aggregates.confirmed,
        "waitlist": aggregates.waitlist,
        "cocktail_spots_left": cocktail_spots_left,
    }
