"""
===============================================================================
USE CASE: Trigger OCR (explicit processing)
===============================================================================

Business Goal:
    Procesar un documento SOLO cuando la raíz de autoridad lo pide
    explícitamente (primer procesamiento, retry desde FAILED o
    re-procesamiento desde PROCESSED).

Flujo:
    1) Autorizar trigger-ocr (no existe / no lo ve -> 404, lo ve sin
       autoridad -> 403, admin -> 403).
    2) can_process(status) o 400.
    3) validate_transition(status -> PROCESSING) + escritura condicional.
    4) OCR port.
    5) PROCESSING -> PROCESSED (page_count, confidence) o
       PROCESSING -> FAILED (mensaje sanitizado, retry_count + 1).
       Si el documento ya no está en PROCESSING el resultado se descarta
       (auditoría con success=False y 400).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    TriggerOcrUseCase

Collaborators:
    - DocumentAccessService (authorize_operation)
    - DocumentStateMachine
    - DocumentRepository (transition_status condicional)
    - OcrPort
    - AuditEventRepository
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final
from uuid import UUID

from ....audit import emit_audit_event, sanitize_phi
from ....crosscutting.exceptions import BadRequestError, NotFoundError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEventKind
from ....domain.document_state_machine import DocumentStateMachine
from ....domain.entities import Actor, Document, DocumentOperation, DocumentStatus
from ....domain.repositories import AuditEventRepository, DocumentRepository
from ....domain.services import OcrPort
from ...document_access import DocumentAccessService

_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"
_MSG_CONCURRENT_UPDATE: Final[str] = "Document status changed concurrently; retry"
_MAX_ERROR_CHARS: Final[int] = 500

_START_EVENT_BY_STATUS: Final[dict[DocumentStatus, AuditEventKind]] = {
    DocumentStatus.FAILED: AuditEventKind.DOCUMENT_PROCESSING_RETRY,
    DocumentStatus.PROCESSED: AuditEventKind.DOCUMENT_REPROCESSING_STARTED,
}


def _error_message(exc: Exception) -> str:
    return sanitize_phi(f"{type(exc).__name__}: {exc}", max_length=_MAX_ERROR_CHARS)


class TriggerOcrUseCase:
    def __init__(
        self,
        document_repository: DocumentRepository,
        access_service: DocumentAccessService,
        ocr: OcrPort,
        audit_repository: AuditEventRepository | None = None,
    ) -> None:
        self._documents = document_repository
        self._access = access_service
        self._ocr = ocr
        self._audit = audit_repository

    def execute(self, *, document_id: UUID, actor: Actor) -> Document:
        document = self._access.authorize_operation(
            document_id, DocumentOperation.TRIGGER_OCR, actor
        )

        from_status = document.status
        if not DocumentStateMachine.can_process(from_status):
            raise BadRequestError(
                f"Document in status {from_status.value} cannot be processed"
            )
        DocumentStateMachine.validate_transition(from_status, DocumentStatus.PROCESSING)

        started = self._documents.transition_status(
            document_id,
            from_statuses=[from_status],
            to_status=DocumentStatus.PROCESSING,
            changes={
                "processing_started_at": datetime.now(timezone.utc),
                "error_message": None,
            },
        )
        if not started:
            raise BadRequestError(_MSG_CONCURRENT_UPDATE)

        metadata = {"document_id": document_id, "from_status": from_status}
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=_START_EVENT_BY_STATUS.get(
                from_status, AuditEventKind.DOCUMENT_PROCESSING_STARTED
            ),
            success=True,
            metadata=metadata,
        )

        try:
            result = self._ocr.extract(document.raw_file_uri or "", document.mime_type or "")
        except Exception as exc:
            logger.exception(
                "OCR processing failed", extra={"document_id": str(document_id)}
            )
            self._record_failure(document, actor, _error_message(exc), metadata)
        else:
            self._record_success(document, actor, result.page_count, result.confidence, metadata)

        return self._reload(document_id)

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _record_success(
        self,
        document: Document,
        actor: Actor,
        page_count: int,
        confidence: float,
        metadata: dict,
    ) -> None:
        DocumentStateMachine.validate_transition(
            DocumentStatus.PROCESSING, DocumentStatus.PROCESSED
        )
        completed = self._documents.transition_status(
            document.id,
            from_statuses=[DocumentStatus.PROCESSING],
            to_status=DocumentStatus.PROCESSED,
            changes={
                "page_count": page_count,
                "confidence": confidence,
                "processed_at": datetime.now(timezone.utc),
                "error_message": None,
            },
        )
        if not completed:
            raise self._stale_result_error(
                actor, AuditEventKind.DOCUMENT_PROCESSING_COMPLETED, metadata
            )
        logger.info(
            "OCR processing completed",
            extra={"document_id": str(document.id), "page_count": page_count},
        )
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_PROCESSING_COMPLETED,
            success=True,
            metadata={**metadata, "page_count": page_count, "confidence": confidence},
        )

    def _record_failure(
        self, document: Document, actor: Actor, error_message: str, metadata: dict
    ) -> None:
        DocumentStateMachine.validate_transition(
            DocumentStatus.PROCESSING, DocumentStatus.FAILED
        )
        failed = self._documents.transition_status(
            document.id,
            from_statuses=[DocumentStatus.PROCESSING],
            to_status=DocumentStatus.FAILED,
            changes={
                "error_message": error_message,
                "retry_count": document.retry_count + 1,
            },
        )
        if not failed:
            raise self._stale_result_error(
                actor, AuditEventKind.DOCUMENT_PROCESSING_FAILED, metadata
            )
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_PROCESSING_FAILED,
            success=False,
            metadata=metadata,
        )

    def _stale_result_error(
        self, actor: Actor, event_kind: AuditEventKind, metadata: dict
    ) -> BadRequestError:
        """El documento salió de PROCESSING mientras corría el OCR (p.ej. archivado)."""
        logger.warning(
            "OCR result discarded: document left PROCESSING",
            extra={"document_id": str(metadata["document_id"])},
        )
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=event_kind,
            success=False,
            metadata={**metadata, "reason": "status_changed"},
        )
        return BadRequestError(_MSG_CONCURRENT_UPDATE)

    def _reload(self, document_id: UUID) -> Document:
        document = self._documents.find_by_id(document_id)
        if document is None:
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)
        return document
