from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import Event, OverflowAction


@dataclass(frozen=True)
class DinnerConfig:
    enabled: bool
    window_start: Optional[datetime]
    window_end: Optional[datetime]
    seating_interval_hours: float
    max_seats_per_slot: Optional[int]
    overflow_action: OverflowAction


@dataclass(frozen=True)
class EventConfig:
    """Limits and policies of one event, read once per admission decision.

    Capacities of ``None`` mean unlimited.
    """

    event_id: int
    capacity_total: Optional[int]
    capacity_cocktail_only: Optional[int]
    capacity_dinner: Optional[int]
    waitlist_enabled: bool
    max_plus_ones_per_guest: int
    dinner: Optional[DinnerConfig] = None

    @property
    def dinner_enabled(self) -> bool:
        return self.dinner is not None and self.dinner.enabled

    @classmethod
    def from_event(cls, event: Event) -> "EventConfig":
        dinner: Optional[DinnerConfig] = None
        if event.dinner_enabled:
            dinner = DinnerConfig(
                enabled=True,
                window_start=event.dinner_window_start,
                window_end=event.dinner_window_end,
                seating_interval_hours=event.dinner_seating_interval_hours,
                max_seats_per_slot=event.dinner_max_seats_per_slot,
                overflow_action=OverflowAction(event.dinner_overflow_action),
            )
        return cls(
            event_id=event.id,
            capacity_total=event.capacity_total,
            capacity_cocktail_only=event.capacity_cocktail_only,
            capacity_dinner=event.capacity_dinner,
            waitlist_enabled=event.waitlist_enabled,
            max_plus_ones_per_guest=event.max_plus_ones_per_guest,
            dinner=dinner,
        )
