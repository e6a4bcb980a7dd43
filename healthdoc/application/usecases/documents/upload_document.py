"""
===============================================================================
USE CASE: Upload Document
===============================================================================

Business Goal:
    Recibir un archivo de un usuario o manager, guardarlo en el blob storage
    y registrar el documento con su raíz de autoridad.

Why (Context / Intención):
    - "Subir es solo subir": el documento queda en STORED y NUNCA dispara OCR.
    - Primero el blob, después la fila: si el storage falla no queda un
      documento huérfano apuntando a nada.

Resolución de la raíz de autoridad:
    - Actor manager: su registro (debe estar verificado) es origin manager.
    - Actor user que nombra un manager (por user id del manager): ese
      manager (verificado) es origin manager.
    - Actor user sin manager: documento self-managed.
    - En todos los casos origin_user_context_id = user id del uploader.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    UploadDocumentUseCase

Responsibilities:
    - Validar payload (vacío / tamaño / metadata mínima).
    - Resolver la raíz de autoridad.
    - Subir blob, persistir documento, auditar.

Collaborators:
    - DocumentRepository / ManagerRepository
    - BlobStoragePort
    - AuditEventRepository (emit_audit_event)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final, Optional
from uuid import uuid4

from ....audit import emit_audit_event
from ....crosscutting.exceptions import BadRequestError, ForbiddenError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEventKind
from ....domain.entities import Actor, ActorType, Document, DocumentStatus
from ....domain.repositories import (
    AuditEventRepository,
    DocumentRepository,
    ManagerRepository,
)
from ....domain.services import BlobStoragePort

_MSG_ADMIN_FORBIDDEN: Final[str] = "Admins cannot upload documents"
_MSG_EMPTY_FILE: Final[str] = "Uploaded file is empty"
_MSG_MISSING_METADATA: Final[str] = "file_name and mime_type are required"
_MSG_MANAGER_NOT_VERIFIED: Final[str] = "Manager account is not verified"
_MSG_MANAGER_SELF_ONLY: Final[str] = "Managers upload under their own authority"
_MSG_INVALID_ORIGIN_MANAGER: Final[str] = "Origin manager must be a verified manager"

DEFAULT_MAX_UPLOAD_BYTES: Final[int] = 10 * 1024 * 1024


class UploadDocumentUseCase:
    def __init__(
        self,
        document_repository: DocumentRepository,
        manager_repository: ManagerRepository,
        blob_storage: BlobStoragePort,
        audit_repository: AuditEventRepository | None = None,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self._documents = document_repository
        self._managers = manager_repository
        self._storage = blob_storage
        self._audit = audit_repository
        self._max_upload_bytes = max_upload_bytes

    def execute(
        self,
        *,
        actor: Actor,
        content: bytes,
        file_name: str,
        mime_type: str,
        origin_manager_user_id: Optional[int] = None,
    ) -> Document:
        """
        Raises:
            ForbiddenError: admin, o manager sin registro verificado.
            BadRequestError: archivo vacío / demasiado grande / metadata
                faltante / manager de origen inválido.
        """
        if actor.is_admin:
            raise ForbiddenError(_MSG_ADMIN_FORBIDDEN)

        if not content:
            raise BadRequestError(_MSG_EMPTY_FILE)
        if len(content) > self._max_upload_bytes:
            raise BadRequestError(
                f"File exceeds maximum size of {self._max_upload_bytes} bytes"
            )
        if not (file_name or "").strip() or not (mime_type or "").strip():
            raise BadRequestError(_MSG_MISSING_METADATA)

        origin_manager_id = self._resolve_origin_manager(actor, origin_manager_user_id)

        document_id = uuid4()
        audit_metadata = {
            "document_id": document_id,
            "file_size": len(content),
            "mime_type": mime_type,
            "self_managed": origin_manager_id is None,
        }

        # 1) Blob primero.
        try:
            raw_file_uri = self._storage.upload_file(
                f"documents/{document_id}", content, mime_type
            )
        except Exception:
            logger.exception(
                "Document upload to storage failed",
                extra={"document_id": str(document_id)},
            )
            emit_audit_event(
                self._audit,
                actor=actor,
                event_kind=AuditEventKind.DOCUMENT_UPLOADED,
                success=False,
                metadata={**audit_metadata, "reason": "storage_failed"},
            )
            raise

        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_UPLOADED,
            success=True,
            metadata=audit_metadata,
        )

        # 2) Fila, ya en STORED (alta, no es una transición de procesamiento).
        now = datetime.now(timezone.utc)
        document = Document(
            id=document_id,
            origin_manager_id=origin_manager_id,
            origin_user_context_id=actor.id,
            status=DocumentStatus.STORED,
            raw_file_uri=raw_file_uri,
            file_name=file_name,
            file_size=len(content),
            mime_type=mime_type,
            uploaded_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            self._documents.save(document)
        except Exception:
            self._discard_blob(raw_file_uri)
            raise

        logger.info(
            "Document stored",
            extra={"document_id": str(document_id), "actor_type": actor.type.value},
        )
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_STORED,
            success=True,
            metadata=audit_metadata,
        )
        return document

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _resolve_origin_manager(
        self, actor: Actor, origin_manager_user_id: Optional[int]
    ) -> Optional[int]:
        if actor.type == ActorType.MANAGER:
            if origin_manager_user_id is not None and origin_manager_user_id != actor.id:
                raise BadRequestError(_MSG_MANAGER_SELF_ONLY)
            manager = self._managers.find_by_user_id(actor.id)
            if manager is None or not manager.is_verified:
                raise ForbiddenError(_MSG_MANAGER_NOT_VERIFIED)
            return manager.id

        if origin_manager_user_id is None:
            return None

        manager = self._managers.find_by_user_id(origin_manager_user_id)
        if manager is None or not manager.is_verified:
            raise BadRequestError(_MSG_INVALID_ORIGIN_MANAGER)
        return manager.id

    def _discard_blob(self, raw_file_uri: str) -> None:
        try:
            self._storage.delete_file(raw_file_uri)
        except Exception:
            logger.warning(
                "Could not discard blob after failed document save",
                exc_info=True,
            )
