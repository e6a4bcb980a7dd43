"""
===============================================================================
USE CASE: Delete Document (Soft Delete + retention schedule)
===============================================================================

Business Goal:
    Eliminar lógicamente un documento preservando el archivo durante la
    ventana de retención. El borrado físico lo hace el barrido de retención
    (PurgeExpiredDocumentsUseCase) cuando vence scheduled_deletion_at.

Reglas:
    - Solo la raíz de autoridad (operación `delete`).
    - deleted_at = now, scheduled_deletion_at = now + retention_years,
      status = ARCHIVED (terminal).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final
from uuid import UUID

from ....audit import emit_audit_event
from ....crosscutting.exceptions import NotFoundError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEventKind
from ....domain.entities import Actor, DocumentOperation
from ....domain.repositories import AuditEventRepository, DocumentRepository
from ...document_access import DocumentAccessService

_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"

DEFAULT_RETENTION_YEARS: Final[int] = 8


def add_years(moment: datetime, years: int) -> datetime:
    """Suma años calendario (29/02 cae en 28/02 si el año destino no es bisiesto)."""
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, day=28)


class DeleteDocumentUseCase:
    """
    Use Case (Application Service / Command):
        Soft-delete protegido por la autoridad de origen.
    """

    def __init__(
        self,
        document_repository: DocumentRepository,
        access_service: DocumentAccessService,
        audit_repository: AuditEventRepository | None = None,
        *,
        retention_years: int = DEFAULT_RETENTION_YEARS,
    ) -> None:
        self._documents = document_repository
        self._access = access_service
        self._audit = audit_repository
        self._retention_years = retention_years

    def execute(self, *, document_id: UUID, actor: Actor) -> datetime:
        """Devuelve scheduled_deletion_at."""
        self._access.authorize_operation(document_id, DocumentOperation.DELETE, actor)

        now = datetime.now(timezone.utc)
        scheduled = add_years(now, self._retention_years)

        deleted = self._documents.soft_delete(
            document_id, deleted_at=now, scheduled_deletion_at=scheduled
        )
        if not deleted:
            # Race condition: otro request lo eliminó entre el get y el delete.
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        logger.info("Document soft-deleted", extra={"document_id": str(document_id)})
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_DELETED,
            success=True,
            metadata={"document_id": document_id, "scheduled_deletion_at": scheduled},
        )
        return scheduled
