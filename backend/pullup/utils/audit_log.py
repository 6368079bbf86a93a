from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .correlation import get_correlation_id

AuditAction = Literal[
    "event.created",
    "event.updated",
    "rsvp.created",
    "rsvp.updated",
    "rsvp.deleted",
    "rsvp.checked_in",
    "rsvp.capacity_overridden",
]
AuditInitiator = Literal["guest", "host", "system"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _to_json_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    event_id: Optional[int],
    rsvp_id: Optional[int] = None,
    party_size: Optional[int] = None,
    status_from: Optional[str] = None,
    status_to: Optional[str] = None,
    dinner_status: Optional[str] = None,
    dinner_slot: Optional[datetime] = None,
    capacity_overridden: Optional[bool] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit one structured JSON audit line. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "correlation_id": get_correlation_id(),
        "event_id": event_id,
        "rsvp_id": rsvp_id,
        "party_size": party_size,
        "status_from": _to_json_value(status_from),
        "status_to": _to_json_value(status_to),
        "dinner_status": _to_json_value(dinner_status),
        "dinner_slot": _to_json_value(dinner_slot),
        "capacity_overridden": capacity_overridden,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update({k: _to_json_value(v) for k, v in extra.items()})

    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
