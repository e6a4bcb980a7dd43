"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/audit_events.py
============================================================
Class: PostgresAuditEventRepository

Responsibilities:
  - Persistir eventos de auditoría en PostgreSQL (tabla audit_events).

Constraints / Notes:
  - Append-only: no se edita, no se borra.
  - Si falla, se propaga DatabaseError; emit_audit_event ya traga errores.
============================================================
"""

from __future__ import annotations

from psycopg.types.json import Json

from ....domain.audit import AuditEvent
from .base import PostgresRepositoryBase


class PostgresAuditEventRepository(PostgresRepositoryBase):
    _SQL_INSERT = """
        INSERT INTO audit_events (id, actor_type, actor_id, event_kind, success, metadata, created_at)
        VALUES (%s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
    """

    def record_event(self, event: AuditEvent) -> None:
        self._execute_rowcount(
            query=self._SQL_INSERT,
            params=[
                event.id,
                event.actor_type,
                event.actor_id,
                event.event_kind.value,
                event.success,
                Json(event.metadata or {}),
                event.created_at,
            ],
            context_msg="PostgresAuditEventRepository: Failed to record audit event",
            extra={"event_id": str(event.id), "event_kind": event.event_kind.value},
        )
