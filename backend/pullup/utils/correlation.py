from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> Optional[str]:
    return _correlation_id_ctx.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id (a fresh one if omitted) to audit records emitted inside the block."""
    value = correlation_id or new_correlation_id()
    token = _correlation_id_ctx.set(value)
    try:
        yield value
    finally:
        _correlation_id_ctx.reset(token)
