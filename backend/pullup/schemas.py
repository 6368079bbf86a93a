from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import OverflowAction
from .utils.time import parse_timestamp


def _utc_naive(value: Optional[datetime | str]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if not isinstance(value, (datetime, str)):
        raise ValueError("expected an ISO 8601 timestamp")
    return parse_timestamp(value)


class EventCreate(BaseModel):
    """Validated event configuration accepted by create_event."""

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=10000)
    location: Optional[str] = Field(default=None, max_length=500)
    starts_at: datetime
    ends_at: Optional[datetime] = None

    capacity_total: Optional[int] = Field(default=None, ge=1, le=100000)
    capacity_cocktail_only: Optional[int] = Field(default=None, ge=1, le=100000)
    capacity_dinner: Optional[int] = Field(default=None, ge=1, le=100000)
    waitlist_enabled: bool = True
    max_plus_ones_per_guest: int = Field(default=0, ge=0, le=3)

    dinner_enabled: bool = False
    dinner_window_start: Optional[datetime] = None
    dinner_window_end: Optional[datetime] = None
    dinner_seating_interval_hours: float = 2.0
    dinner_max_seats_per_slot: Optional[int] = Field(default=None, ge=1)
    dinner_overflow_action: OverflowAction = OverflowAction.WAITLIST

    @field_validator("starts_at", "ends_at", "dinner_window_start", "dinner_window_end", mode="before")
    @classmethod
    def _normalize_datetime(cls, value: Optional[datetime | str]) -> Optional[datetime]:
        return _utc_naive(value)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title is required")
        return value

    @model_validator(mode="after")
    def _check_windows(self) -> "EventCreate":
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        if (
            self.dinner_window_start is not None
            and self.dinner_window_end is not None
            and self.dinner_window_end < self.dinner_window_start
        ):
            raise ValueError("dinner_window_end must be after dinner_window_start")
        return self


class EventUpdate(BaseModel):
    """
    Host edit of an event. Only the fields that are set are applied; update_event
    re-validates the merged configuration with EventCreate, so limits and window
    ordering are checked the same way as on creation. The slug never changes.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    capacity_total: Optional[int] = None
    capacity_cocktail_only: Optional[int] = None
    capacity_dinner: Optional[int] = None
    waitlist_enabled: Optional[bool] = None
    max_plus_ones_per_guest: Optional[int] = None

    dinner_enabled: Optional[bool] = None
    dinner_window_start: Optional[datetime] = None
    dinner_window_end: Optional[datetime] = None
    dinner_seating_interval_hours: Optional[float] = None
    dinner_max_seats_per_slot: Optional[int] = None
    dinner_overflow_action: Optional[OverflowAction] = None

    @field_validator("starts_at", "ends_at", "dinner_window_start", "dinner_window_end", mode="before")
    @classmethod
    def _normalize_datetime(cls, value: Optional[datetime | str]) -> Optional[datetime]:
        return _utc_naive(value)


class RsvpCreate(BaseModel):
    """Guest RSVP as submitted. Plus-ones are clamped later against the event's limit."""

    email: Optional[str] = None
    name: Optional[str] = None
    plus_ones: Optional[int] = 0
    wants_dinner: bool = False
    dinner_slot: Optional[datetime] = None
    dinner_party_size: Optional[int] = None

    @field_validator("dinner_slot", mode="before")
    @classmethod
    def _normalize_slot(cls, value: Optional[datetime | str]) -> Optional[datetime]:
        return _utc_naive(value)


class CheckIn(BaseModel):
    """Arrivals to add to a booking's counts; negative values undo a check-in."""

    dinner: int = 0
    cocktails: int = 0


class RsvpUpdate(BaseModel):
    """Partial edit of an RSVP; only fields explicitly supplied are applied."""

    name: Optional[str] = None
    email: Optional[str] = None
    plus_ones: Optional[int] = None
    wants_dinner: Optional[bool] = None
    dinner_slot: Optional[datetime] = None
    dinner_party_size: Optional[int] = None

    @field_validator("dinner_slot", mode="before")
    @classmethod
    def _normalize_slot(cls, value: Optional[datetime | str]) -> Optional[datetime]:
        return _utc_naive(value)

    def supplied(self, field: str) -> bool:
        return field in self.model_fields_set and getattr(self, field) is not None
