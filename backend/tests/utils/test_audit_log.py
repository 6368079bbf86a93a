import json
from datetime import datetime
from typing import Any, List

import pytest
from pullup.models import BookingStatus, DinnerStatus
from pullup.utils import audit_log
from pullup.utils.correlation import correlation_scope


def test_emit_audit_log_outputs_json(monkeypatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    with correlation_scope("req-123"):
        audit_log.emit_audit_log(
            action="rsvp.created",
            initiator="guest",
            event_id=3,
            rsvp_id=1,
            party_size=2,
            status_to=BookingStatus.WAITLIST,
            dinner_status=DinnerStatus.COCKTAILS_WAITLIST,
            dinner_slot=datetime(2026, 12, 31, 18, 0),
        )
    assert len(messages) == 1
    payload = json.loads(messages[0])
    assert payload["action"] == "rsvp.created"
    assert payload["initiator"] == "guest"
    assert payload["correlation_id"] == "req-123"
    assert payload["status_to"] == "WAITLIST"
    assert payload["dinner_status"] == "cocktails_waitlist"
    assert payload["dinner_slot"] == "2026-12-31T18:00:00"
    assert "status_from" not in payload
    assert "timestamp" in payload


def test_emit_audit_log_merges_extra(monkeypatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())
    audit_log.emit_audit_log(
        action="rsvp.checked_in",
        initiator="host",
        event_id=3,
        rsvp_id=1,
        extra={"dinner_arrived_count": 2},
    )
    payload = json.loads(messages[0])
    assert payload["dinner_arrived_count"] == 2
    assert "correlation_id" not in payload


def test_emit_audit_log_raises_on_logger_failure(monkeypatch) -> None:
    class DummyLogger:
        def info(self, _: Any) -> None:
            raise ValueError("fail")

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(
            action="rsvp.deleted",
            initiator="host",
            event_id=3,
            rsvp_id=1,
            party_size=2,
            status_from=BookingStatus.CONFIRMED,
        )
