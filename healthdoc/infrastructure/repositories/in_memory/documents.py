"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/documents.py
============================================================
Class: InMemoryDocumentRepository

Responsibilities:
  - Almacenar documentos en memoria (tests / local dev).
  - Escrituras condicionales (estado, origin manager, soft delete) que
    replican los UPDATE ... WHERE de Postgres.

Constraints / Notes:
  - Thread-safe: Lock protege el diccionario interno.
  - Copias defensivas.
  - Orden determinístico: created_at ASC, luego insertion order.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from ....domain.entities import Document, DocumentStatus

# Campos que transition_status puede tocar además de status.
_MUTABLE_FIELDS = frozenset(
    {
        "error_message",
        "retry_count",
        "page_count",
        "confidence",
        "processing_started_at",
        "processed_at",
    }
)


class InMemoryDocumentRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._documents: Dict[UUID, Document] = {}

    def save(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = replace(document)

    def find_by_id(
        self, document_id: UUID, *, include_deleted: bool = False
    ) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or (document.is_deleted and not include_deleted):
                return None
            return replace(document)

    def find_by_origin_manager_id(
        self,
        manager_id: int,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        statuses: Optional[Sequence[DocumentStatus]] = None,
    ) -> tuple[List[Document], int]:
        with self._lock:
            matches = [
                replace(d)
                for d in self._documents.values()
                if d.origin_manager_id == manager_id
                and not d.is_deleted
                and (not statuses or d.status in statuses)
            ]
        end = None if limit is None else skip + limit
        return matches[skip:end], len(matches)

    def transition_status(
        self,
        document_id: UUID,
        *,
        from_statuses: Sequence[DocumentStatus],
        to_status: DocumentStatus,
        changes: Optional[dict] = None,
    ) -> bool:
        changes = dict(changes or {})
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported document fields: {sorted(unknown)}")

        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.is_deleted:
                return False
            if document.status not in from_statuses:
                return False
            self._documents[document_id] = replace(
                document,
                status=to_status,
                updated_at=datetime.now(timezone.utc),
                **changes,
            )
            return True

    def assign_origin_manager(self, document_id: UUID, manager_id: int) -> bool:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.is_deleted:
                return False
            if document.origin_manager_id is not None:
                return False
            self._documents[document_id] = replace(
                document,
                origin_manager_id=manager_id,
                updated_at=datetime.now(timezone.utc),
            )
            return True

    def soft_delete(
        self,
        document_id: UUID,
        *,
        deleted_at: datetime,
        scheduled_deletion_at: datetime,
    ) -> bool:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.is_deleted:
                return False
            self._documents[document_id] = replace(
                document,
                status=DocumentStatus.ARCHIVED,
                deleted_at=deleted_at,
                scheduled_deletion_at=scheduled_deletion_at,
                updated_at=deleted_at,
            )
            return True

    def find_expired(self, now: datetime) -> List[Document]:
        with self._lock:
            return [
                replace(d)
                for d in self._documents.values()
                if d.is_deleted
                and d.scheduled_deletion_at is not None
                and d.scheduled_deletion_at <= now
            ]

    def hard_delete(self, document_id: UUID) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None
