from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, DateTime, Integer, String, Text


class Base(DeclarativeBase):
    pass


class BookingStatus(StrEnum):
    CONFIRMED = "CONFIRMED"
    WAITLIST = "WAITLIST"
    CANCELLED = "CANCELLED"


class DinnerStatus(StrEnum):
    CONFIRMED = "confirmed"
    WAITLIST = "waitlist"
    COCKTAILS = "cocktails"
    COCKTAILS_WAITLIST = "cocktails_waitlist"


class OverflowAction(StrEnum):
    WAITLIST = "waitlist"
    COCKTAILS = "cocktails"
    BOTH = "both"


def _enum(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda cls: [e.value for e in cls],
        native_enum=False,
    )


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_events_slug"),
        CheckConstraint("capacity_total IS NULL OR capacity_total >= 1", name="chk_events_capacity_total"),
        CheckConstraint(
            "capacity_cocktail_only IS NULL OR capacity_cocktail_only >= 1",
            name="chk_events_capacity_cocktail",
        ),
        CheckConstraint("capacity_dinner IS NULL OR capacity_dinner >= 1", name="chk_events_capacity_dinner"),
        CheckConstraint(
            "max_plus_ones_per_guest >= 0 AND max_plus_ones_per_guest <= 3",
            name="chk_events_plus_ones",
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    capacity_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    capacity_cocktail_only: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    capacity_dinner: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    waitlist_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_plus_ones_per_guest: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    dinner_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dinner_window_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    dinner_window_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    dinner_seating_interval_hours: Mapped[float] = mapped_column(Float, nullable=False, default=2.0)
    dinner_max_seats_per_slot: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dinner_overflow_action: Mapped[OverflowAction] = mapped_column(
        _enum(OverflowAction),
        nullable=False,
        default=OverflowAction.WAITLIST,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    rsvps: Mapped[list["Rsvp"]] = relationship(back_populates="event", cascade="all, delete-orphan")


class Rsvp(Base):
    __tablename__ = "rsvps"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="chk_rsvps_party_size"),
        CheckConstraint("party_size = plus_ones + 1", name="chk_rsvps_party_plus_ones"),
        CheckConstraint("dinner_party_size IS NULL OR dinner_party_size >= 1", name="chk_rsvps_dinner_party"),
        UniqueConstraint("event_id", "email", name="uq_rsvps_event_email"),
        Index("idx_rsvps_event", "event_id"),
        Index("idx_rsvps_event_status", "event_id", "booking_status"),
        Index("idx_rsvps_event_slot", "event_id", "dinner_slot"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    plus_ones: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    booking_status: Mapped[BookingStatus] = mapped_column(
        _enum(BookingStatus),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )

    wants_dinner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dinner_slot: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    dinner_party_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dinner_status: Mapped[Optional[DinnerStatus]] = mapped_column(_enum(DinnerStatus), nullable=True)

    capacity_overridden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dinner_arrived_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cocktail_arrived_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    event: Mapped["Event"] = relationship(back_populates="rsvps")
