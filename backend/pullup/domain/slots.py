from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .event_config import EventConfig

DEFAULT_SEATING_INTERVAL_HOURS = 2.0


def generate_dinner_slots(config: EventConfig) -> list[datetime]:
    """
    Enumerate bookable dinner slots from window start to window end, inclusive.
    Returns an empty list when dinner is disabled or the window is incomplete.
    A non-positive seating interval falls back to the 2 hour default.
    """
    dinner = config.dinner
    if dinner is None or not dinner.enabled:
        return []
    if dinner.window_start is None or dinner.window_end is None:
        return []

    hours = dinner.seating_interval_hours
    if not hours or hours <= 0:
        hours = DEFAULT_SEATING_INTERVAL_HOURS
    step = timedelta(hours=hours)

    slots: list[datetime] = []
    current = dinner.window_start
    while current <= dinner.window_end:
        slots.append(current)
        current += step
    return slots


def resolve_slot(config: EventConfig, requested: Optional[datetime]) -> Optional[datetime]:
    """Pick the requested slot if it is one of the generated ones, else the first slot, else None."""
    slots = generate_dinner_slots(config)
    if not slots:
        return None
    if requested is not None and requested in slots:
        return requested
    return slots[0]
