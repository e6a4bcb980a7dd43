"""
===============================================================================
USE CASE: Assign Origin Manager (one-time)
===============================================================================

Business Goal:
    Permitir que el usuario que subió un documento self-managed le asigne un
    manager verificado como raíz de autoridad. Operación única e irreversible.

Reglas:
    - Solo el uploader (actor user, id == origin_user_context_id).
      Otro actor que ve el documento -> 403; que no lo ve -> 404.
    - Documento que ya tiene origin manager -> 400.
    - Manager inexistente -> 404; no verificado -> 400.
    - Escritura condicional (origin_manager_id IS NULL): dos asignaciones
      concurrentes no pueden pisarse.
    - El uploader pierde la autoridad de origen pero conserva lectura mediante
      un grant `owner` creado en el mismo paso.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    AssignManagerUseCase

Collaborators:
    - DocumentRepository (assign_origin_manager)
    - ManagerRepository (find_by_id)
    - AccessGrantRepository (grant owner para el uploader)
    - AccessGrantService (has_access_to_document, para 403 vs 404)
    - AuditEventRepository
===============================================================================
"""

from __future__ import annotations

from typing import Final
from uuid import UUID

from ....audit import emit_audit_event
from ....crosscutting.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEventKind
from ....domain.entities import (
    Actor,
    ActorType,
    Document,
    GrantType,
    NewAccessGrant,
    SubjectType,
)
from ....domain.repositories import (
    AccessGrantRepository,
    AuditEventRepository,
    DocumentRepository,
    ManagerRepository,
)
from ...access_grants import AccessGrantService

_MSG_ADMIN_FORBIDDEN: Final[str] = "Admins do not have document-level access"
_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"
_MSG_MANAGER_NOT_FOUND: Final[str] = "Manager not found"
_MSG_ONLY_UPLOADER: Final[str] = (
    "Only the user who uploaded the document can assign a manager"
)
_MSG_ALREADY_ASSIGNED: Final[str] = "Document already has an origin manager"
_MSG_MANAGER_NOT_VERIFIED: Final[str] = "Manager must be verified"


class AssignManagerUseCase:
    def __init__(
        self,
        document_repository: DocumentRepository,
        manager_repository: ManagerRepository,
        grant_repository: AccessGrantRepository,
        grant_service: AccessGrantService,
        audit_repository: AuditEventRepository | None = None,
    ) -> None:
        self._documents = document_repository
        self._managers = manager_repository
        self._grants = grant_repository
        self._grant_service = grant_service
        self._audit = audit_repository

    def execute(self, *, document_id: UUID, actor: Actor, manager_id: int) -> Document:
        if actor.is_admin:
            raise ForbiddenError(_MSG_ADMIN_FORBIDDEN)

        metadata = {"document_id": document_id, "manager_id": manager_id}

        document = self._documents.find_by_id(document_id)
        if document is None:
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        is_uploader = (
            actor.type == ActorType.USER
            and document.origin_user_context_id == actor.id
        )
        if not is_uploader:
            self._audit_failure(actor, metadata, "not_uploader")
            if self._grant_service.has_access_to_document(document, actor.type, actor.id):
                raise ForbiddenError(_MSG_ONLY_UPLOADER)
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        if document.origin_manager_id is not None:
            self._audit_failure(actor, metadata, "already_assigned")
            raise BadRequestError(_MSG_ALREADY_ASSIGNED)

        manager = self._managers.find_by_id(manager_id)
        if manager is None:
            raise NotFoundError(_MSG_MANAGER_NOT_FOUND)
        if not manager.is_verified:
            self._audit_failure(actor, metadata, "manager_not_verified")
            raise BadRequestError(_MSG_MANAGER_NOT_VERIFIED)

        if not self._documents.assign_origin_manager(document_id, manager.id):
            self._audit_failure(actor, metadata, "already_assigned")
            raise BadRequestError(_MSG_ALREADY_ASSIGNED)

        self._grants.create(
            NewAccessGrant(
                document_id=document_id,
                subject_type=SubjectType.USER,
                subject_id=actor.id,
                grant_type=GrantType.OWNER,
                granted_by_type=actor.type,
                granted_by_id=actor.id,
            )
        )

        logger.info(
            "Origin manager assigned",
            extra={"document_id": str(document_id), "manager_id": manager.id},
        )
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.ORIGIN_MANAGER_ASSIGNED,
            success=True,
            metadata=metadata,
        )

        refreshed = self._documents.find_by_id(document_id)
        if refreshed is None:
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)
        return refreshed

    def _audit_failure(self, actor: Actor, metadata: dict, reason: str) -> None:
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.ORIGIN_MANAGER_ASSIGNED,
            success=False,
            metadata={**metadata, "reason": reason},
        )
