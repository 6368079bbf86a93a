import re
from typing import Collection, Optional

from .errors import InvalidEmailError

EMAIL_MAX_LENGTH = 255
MAX_PLUS_ONES = 3

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: Optional[str]) -> str:
    """Return the normalized address or raise InvalidEmailError."""
    if not email or not isinstance(email, str):
        raise InvalidEmailError("email is required")
    normalized = normalize_email(email)
    if len(normalized) > EMAIL_MAX_LENGTH:
        raise InvalidEmailError("email must be less than 255 characters")
    if not _EMAIL_RE.match(normalized):
        raise InvalidEmailError("invalid email format")
    return normalized


def clamp_plus_ones(plus_ones: Optional[int], max_plus_ones: int) -> int:
    """Clamp an already validated plus-one count into ``[0, min(max_plus_ones, MAX_PLUS_ONES)]``."""
    limit = max(0, min(max_plus_ones, MAX_PLUS_ONES))
    return max(0, min(plus_ones or 0, limit))


def slugify(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "event"


def unique_slug(base: str, existing: Collection[str]) -> str:
    """First of ``base``, ``base-2``, ``base-3``... not already in ``existing``."""
    slug = base
    counter = 2
    while slug in existing:
        slug = f"{base}-{counter}"
        counter += 1
    return slug
