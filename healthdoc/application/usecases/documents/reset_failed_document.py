"""
USE CASE: Reset Failed Document

FAILED -> STORED por decisión manual de la raíz de autoridad. No dispara OCR:
el documento queda listo para un nuevo trigger explícito.
"""

from __future__ import annotations

from typing import Final
from uuid import UUID

from ....audit import emit_audit_event
from ....crosscutting.exceptions import BadRequestError, NotFoundError
from ....domain.audit import AuditEventKind
from ....domain.document_state_machine import DocumentStateMachine
from ....domain.entities import Actor, Document, DocumentOperation, DocumentStatus
from ....domain.repositories import AuditEventRepository, DocumentRepository
from ...document_access import DocumentAccessService

_MSG_ONLY_FAILED: Final[str] = "Only FAILED documents can be reset"
_MSG_CONCURRENT_UPDATE: Final[str] = "Document status changed concurrently; retry"
_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"


class ResetFailedDocumentUseCase:
    def __init__(
        self,
        document_repository: DocumentRepository,
        access_service: DocumentAccessService,
        audit_repository: AuditEventRepository | None = None,
    ) -> None:
        self._documents = document_repository
        self._access = access_service
        self._audit = audit_repository

    def execute(self, *, document_id: UUID, actor: Actor) -> Document:
        # Misma autoridad que el trigger: solo la raíz de autoridad.
        document = self._access.authorize_operation(
            document_id, DocumentOperation.TRIGGER_OCR, actor
        )

        if not DocumentStateMachine.can_retry(document.status):
            raise BadRequestError(_MSG_ONLY_FAILED)
        DocumentStateMachine.validate_transition(document.status, DocumentStatus.STORED)

        reset = self._documents.transition_status(
            document_id,
            from_statuses=[DocumentStatus.FAILED],
            to_status=DocumentStatus.STORED,
            changes={"error_message": None},
        )
        if not reset:
            raise BadRequestError(_MSG_CONCURRENT_UPDATE)

        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_STORED,
            success=True,
            metadata={"document_id": document_id, "reason": "manual_reset"},
        )

        refreshed = self._documents.find_by_id(document_id)
        if refreshed is None:
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)
        return refreshed
