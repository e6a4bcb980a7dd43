"""
TARJETA CRC — infrastructure/repositories/in_memory/audit_events.py

Sink de auditoría en memoria (tests / local dev). Append-only.
"""

from __future__ import annotations

from threading import Lock
from typing import List, Optional

from ....domain.audit import AuditEvent, AuditEventKind


class InMemoryAuditEventRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[AuditEvent] = []

    def record_event(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_events(self, *, event_kind: Optional[AuditEventKind] = None) -> List[AuditEvent]:
        with self._lock:
            return [
                e for e in self._events if event_kind is None or e.event_kind == event_kind
            ]
