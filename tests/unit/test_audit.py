"""
Name: Audit Emission Unit Tests

Responsibilities:
  - PHI keys are dropped and free text is redacted before persistence
  - Enum / UUID / datetime values are serialized
  - Persistence failures never propagate (fire-and-forget)
"""

from datetime import datetime, timezone
from unittest.mock import Mock
from uuid import uuid4

import pytest

from healthdoc.audit import emit_audit_event, sanitize_phi
from healthdoc.domain.audit import AuditEventKind
from healthdoc.domain.entities import Actor, ActorType, DocumentStatus
from healthdoc.domain.repositories import AuditEventRepository

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw,leaked",
    [
        ("contact jane.doe@example.com", "jane.doe@example.com"),
        ("Authorization: Bearer abc.def.ghi", "abc.def.ghi"),
        ("password=hunter2", "hunter2"),
        ("ssn 123-45-6789", "123-45-6789"),
        ("call 555-123-4567", "555-123-4567"),
        ("mrn 12345678901", "12345678901"),
    ],
)
def test_sanitize_phi_redacts_patterns(raw, leaked):
    assert leaked not in sanitize_phi(raw)


def test_sanitize_phi_truncates():
    out = sanitize_phi("a" * 600, max_length=100)

    assert len(out) == 100
    assert out.endswith("...")


def test_emit_drops_phi_keys_and_serializes_values():
    repository = Mock(spec=AuditEventRepository)
    document_id = uuid4()
    when = datetime(2025, 1, 2, tzinfo=timezone.utc)

    emit_audit_event(
        repository,
        actor=Actor(ActorType.USER, 7),
        event_kind=AuditEventKind.DOCUMENT_STORED,
        success=True,
        metadata={
            "document_id": document_id,
            "status": DocumentStatus.STORED,
            "file_name": "john-smith-labs.pdf",
            "nested": {"email": "a@b.com", "at": when},
        },
    )

    event = repository.record_event.call_args.args[0]
    assert event.actor_type == "user"
    assert event.actor_id == 7
    assert event.metadata == {
        "document_id": str(document_id),
        "status": "STORED",
        "nested": {"at": when.isoformat()},
    }


def test_emit_with_system_actor():
    repository = Mock(spec=AuditEventRepository)

    emit_audit_event(
        repository,
        actor=None,
        event_kind=AuditEventKind.DOCUMENT_HARD_DELETED,
        success=True,
    )

    event = repository.record_event.call_args.args[0]
    assert event.actor_type is None
    assert event.actor_id is None
    assert event.metadata == {}


def test_emit_swallows_repository_failure():
    repository = Mock(spec=AuditEventRepository)
    repository.record_event.side_effect = RuntimeError("db down")

    emit_audit_event(
        repository,
        actor=Actor(ActorType.USER, 7),
        event_kind=AuditEventKind.ACCESS_GRANTED,
        success=True,
    )

    repository.record_event.assert_called_once()


def test_emit_without_repository_is_noop():
    emit_audit_event(
        None,
        actor=Actor(ActorType.USER, 7),
        event_kind=AuditEventKind.ACCESS_GRANTED,
        success=True,
    )
