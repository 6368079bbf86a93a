from datetime import datetime, timezone


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize to the naive-UTC form stored in the database. Naive input is taken as UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO 8601 timestamp (``Z`` suffix accepted) into naive UTC."""
    if isinstance(value, datetime):
        return to_utc_naive(value)
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(text))
