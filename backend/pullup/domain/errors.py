from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from ..models import Rsvp

ErrorKind = Literal[
    "not_found",
    "invalid_email",
    "invalid_input",
    "duplicate",
    "full",
    "invalid_slot",
    "storage_error",
]


class RsvpError(Exception):
    """Base for every outcome the RSVP engine reports as a tagged error."""

    kind: ClassVar[ErrorKind]


class EventNotFoundError(RsvpError):
    kind = "not_found"


class RsvpNotFoundError(RsvpError):
    kind = "not_found"


class InvalidEmailError(RsvpError):
    kind = "invalid_email"


class InvalidInputError(RsvpError):
    """A field other than email or dinner slot has the wrong type or is out of range."""

    kind = "invalid_input"


class DuplicateRsvpError(RsvpError):
    kind = "duplicate"

    def __init__(self, message: str, *, existing: "Rsvp") -> None:
        super().__init__(message)
        self.existing = existing


class EventFullError(RsvpError):
    kind = "full"


class InvalidSlotError(RsvpError):
    kind = "invalid_slot"


class StorageError(RsvpError):
    kind = "storage_error"
