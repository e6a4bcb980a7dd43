"""
===============================================================================
USE CASE: Purge Expired Documents (retention sweep)
===============================================================================

Business Goal:
    Borrar físicamente (blob + fila) los documentos soft-deleted cuya ventana
    de retención venció.

Reglas:
    - Blob primero, fila después: si el blob falla la fila sigue ahí y el
      próximo barrido lo reintenta.
    - Un documento que falla no corta el barrido.
    - Actor del sistema (actor=None) en la auditoría.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ....audit import emit_audit_event
from ....crosscutting.logger import logger
from ....domain.audit import AuditEventKind
from ....domain.repositories import AuditEventRepository, DocumentRepository
from ....domain.services import BlobStoragePort


@dataclass
class PurgeResult:
    purged: int = 0
    failed: int = 0


class PurgeExpiredDocumentsUseCase:
    def __init__(
        self,
        document_repository: DocumentRepository,
        blob_storage: BlobStoragePort,
        audit_repository: AuditEventRepository | None = None,
    ) -> None:
        self._documents = document_repository
        self._storage = blob_storage
        self._audit = audit_repository

    def execute(self, *, now: Optional[datetime] = None) -> PurgeResult:
        now = now or datetime.now(timezone.utc)
        result = PurgeResult()

        for document in self._documents.find_expired(now):
            metadata = {"document_id": document.id}
            try:
                if document.raw_file_uri:
                    self._storage.delete_file(document.raw_file_uri)
                self._documents.hard_delete(document.id)
            except Exception:
                logger.exception(
                    "Retention purge failed", extra={"document_id": str(document.id)}
                )
                result.failed += 1
                emit_audit_event(
                    self._audit,
                    actor=None,
                    event_kind=AuditEventKind.DOCUMENT_HARD_DELETED,
                    success=False,
                    metadata=metadata,
                )
                continue

            result.purged += 1
            emit_audit_event(
                self._audit,
                actor=None,
                event_kind=AuditEventKind.DOCUMENT_HARD_DELETED,
                success=True,
                metadata=metadata,
            )

        logger.info(
            "Retention purge finished",
            extra={"purged": result.purged, "failed": result.failed},
        )
        return result
