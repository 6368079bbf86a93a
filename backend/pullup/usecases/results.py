from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from ..domain.errors import (
    DuplicateRsvpError,
    ErrorKind,
    InvalidEmailError,
    InvalidInputError,
    InvalidSlotError,
    RsvpError,
    StorageError,
)
from ..models import Event, Rsvp

logger = logging.getLogger(__name__)

P = ParamSpec("P")
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Outcome:
    """Result of a mutation: either the affected records or a tagged error."""

    event: Optional[Event] = None
    rsvp: Optional[Rsvp] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def success(self) -> bool:
        return self.ok


def returns_outcome(func: Callable[P, Awaitable[Outcome]]) -> Callable[P, Awaitable[Outcome]]:
    """Turn RsvpError raised by a use case into a tagged Outcome instead of an exception."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Outcome:
        try:
            return await func(*args, **kwargs)
        except DuplicateRsvpError as exc:
            return Outcome(rsvp=exc.existing, error=exc.kind, message=str(exc))
        except StorageError as exc:
            logger.error("%s failed in storage: %s", func.__name__, exc.__cause__ or exc)
            return Outcome(error=exc.kind, message=str(exc))
        except RsvpError as exc:
            return Outcome(error=exc.kind, message=str(exc))

    return wrapper


def parse_input(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate caller input with ``model``; a rejected field becomes the matching RsvpError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        if "dinner_slot" in fields:
            raise InvalidSlotError("invalid dinner time slot") from exc
        if "email" in fields:
            raise InvalidEmailError("invalid email format") from exc
        raise InvalidInputError(f"invalid {', '.join(fields) or 'input'}") from exc
