from datetime import datetime, timedelta
from typing import Optional

from pullup.domain.aggregates import aggregate, cocktail_only_headcount, cocktails_only_count
from pullup.models import BookingStatus, DinnerStatus, Rsvp

T = datetime(2026, 12, 31, 18, 0)


def _rsvp(
    rsvp_id: int,
    *,
    plus_ones: int = 0,
    status: BookingStatus = BookingStatus.CONFIRMED,
    slot: Optional[datetime] = None,
    dinner_status: Optional[DinnerStatus] = None,
    dinner_party_size: Optional[int] = None,
) -> Rsvp:
    return Rsvp(
        id=rsvp_id,
        event_id=1,
        email=f"guest{rsvp_id}@example.com",
        plus_ones=plus_ones,
        party_size=plus_ones + 1,
        booking_status=status,
        wants_dinner=slot is not None,
        dinner_slot=slot,
        dinner_status=dinner_status,
        dinner_party_size=dinner_party_size,
    )


def test_sums_party_sizes_by_status() -> None:
    rows = [
        _rsvp(1, plus_ones=1),
        _rsvp(2, plus_ones=2),
        _rsvp(3, plus_ones=3, status=BookingStatus.WAITLIST),
        _rsvp(4, status=BookingStatus.CANCELLED),
    ]
    result = aggregate(rows)
    assert result.confirmed == 5
    assert result.waitlist == 4


def test_excludes_the_booking_being_edited() -> None:
    rows = [_rsvp(1, plus_ones=1), _rsvp(2, plus_ones=2)]
    assert aggregate(rows, exclude_id=2).confirmed == 2


def test_slot_sums_use_dinner_party_size() -> None:
    later = T + timedelta(hours=2)
    rows = [
        _rsvp(1, plus_ones=3, slot=T, dinner_status=DinnerStatus.CONFIRMED, dinner_party_size=2),
        _rsvp(2, slot=T, dinner_status=DinnerStatus.WAITLIST, dinner_party_size=1),
        _rsvp(3, plus_ones=1, slot=T, dinner_status=DinnerStatus.COCKTAILS_WAITLIST, dinner_party_size=2),
        _rsvp(4, slot=later, dinner_status=DinnerStatus.COCKTAILS, dinner_party_size=1),
    ]
    result = aggregate(rows)
    assert result.slot(T).confirmed == 2
    assert result.slot(T).waitlist == 3
    assert result.slot(later).confirmed == 0
    assert result.slot(later).waitlist == 0


def test_empty_event_has_zero_counts() -> None:
    result = aggregate([])
    assert (result.confirmed, result.waitlist, result.slots) == (0, 0, {})
    assert result.slot(T).confirmed == 0


def test_cocktail_headcount_drops_the_booker_when_dinner_confirmed() -> None:
    seated = _rsvp(1, plus_ones=2, slot=T, dinner_status=DinnerStatus.CONFIRMED, dinner_party_size=1)
    redirected = _rsvp(2, plus_ones=2, slot=T, dinner_status=DinnerStatus.COCKTAILS, dinner_party_size=1)
    assert cocktail_only_headcount(seated) == 2
    assert cocktail_only_headcount(redirected) == 3


def test_cocktails_only_count_ignores_waitlist() -> None:
    rows = [
        _rsvp(1, plus_ones=1),
        _rsvp(2, plus_ones=2, slot=T, dinner_status=DinnerStatus.CONFIRMED, dinner_party_size=3),
        _rsvp(3, plus_ones=3, status=BookingStatus.WAITLIST),
    ]
    assert cocktails_only_count(rows) == 4
