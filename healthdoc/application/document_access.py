"""
===============================================================================
SERVICE: Document Access-Control
===============================================================================

Business Goal:
    Responder "¿puede el actor X hacer la operación Y sobre el documento Z?"
    y listar documentos autorizados, SIN revelar nunca la existencia de un
    documento a un actor sin acceso.

Why (Context / Intención):
    - "No existe" y "existe pero sin acceso" producen el MISMO NotFound, por
      un único camino de código (sin oráculo de existencia).
    - Admin no tiene autoridad a nivel documento: Forbidden / False / página vacía.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    DocumentAccessService

Responsibilities:
    - get_document con auditoría de cada intento (éxito / falla).
    - can_perform_operation según la matriz:
        trigger-ocr / delete -> solo raíz de autoridad
        view / download      -> raíz de autoridad O grant activo
    - list_documents: unión (grants del actor) ∪ (documentos de origen, solo
      managers), deduplicada y paginada.

Collaborators:
    - AccessGrantService (has_access_to_document, grants por sujeto)
    - ManagerAuthorityResolver
    - DocumentRepository / AuditEventRepository
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, List, Optional, Sequence
from uuid import UUID

from ..audit import emit_audit_event
from ..crosscutting.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ..domain.audit import AuditEventKind
from ..domain.authority import requires_origin_authority
from ..domain.entities import (
    Actor,
    Document,
    DocumentOperation,
    DocumentStatus,
    SubjectType,
)
from ..domain.repositories import AuditEventRepository, DocumentRepository
from .access_grants import AccessGrantService
from .authority import ManagerAuthorityResolver

_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"
_MSG_ADMIN_FORBIDDEN: Final[str] = "Admins cannot access document content"
_MSG_INVALID_PAGINATION: Final[str] = "skip must be >= 0 and limit must be >= 1"

DEFAULT_LIMIT: Final[int] = 10
MAX_LIMIT: Final[int] = 100


@dataclass
class DocumentPage:
    data: List[Document] = field(default_factory=list)
    total: int = 0
    skip: int = 0
    limit: int = DEFAULT_LIMIT


class DocumentAccessService:
    def __init__(
        self,
        document_repository: DocumentRepository,
        grant_service: AccessGrantService,
        authority_resolver: ManagerAuthorityResolver,
        audit_repository: AuditEventRepository | None = None,
        *,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._documents = document_repository
        self._grants = grant_service
        self._authority = authority_resolver
        self._audit = audit_repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    # =========================================================================
    # get_document
    # =========================================================================

    def get_document(self, document_id: UUID, actor: Actor) -> Document:
        """
        Raises:
            ForbiddenError: el actor es admin.
            NotFoundError: el documento no existe O el actor no tiene acceso.
        """
        metadata = {"document_id": document_id, "operation": "get_document"}

        if actor.is_admin:
            self._audit_denied(actor, {**metadata, "reason": "admin"})
            raise ForbiddenError(_MSG_ADMIN_FORBIDDEN)

        document = self._documents.find_by_id(document_id)
        if document is None or not self._grants.has_access_to_document(
            document, actor.type, actor.id
        ):
            self._audit_denied(actor, metadata)
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_ACCESSED,
            success=True,
            metadata=metadata,
        )
        return document

    # =========================================================================
    # can_perform_operation
    # =========================================================================

    def can_perform_operation(
        self, document_id: UUID, operation: DocumentOperation, actor: Actor
    ) -> bool:
        if actor.is_admin:
            self._audit_attempt(actor, document_id, operation, reason="admin")
            return False

        document = self._documents.find_by_id(document_id)
        if document is None:
            self._audit_attempt(actor, document_id, operation)
            return False

        return self.can_perform_operation_on_document(document, operation, actor)

    def can_perform_operation_on_document(
        self, document: Document, operation: DocumentOperation, actor: Actor
    ) -> bool:
        """Igual que can_perform_operation, sobre un documento ya cargado."""
        if actor.is_admin:
            self._audit_attempt(actor, document.id, operation, reason="admin")
            return False

        is_origin = self._authority.is_origin_authority(document, actor.type, actor.id)
        if requires_origin_authority(operation):
            allowed = is_origin
        else:
            allowed = is_origin or self._grants.has_access_to_document(
                document, actor.type, actor.id
            )

        if not allowed:
            self._audit_attempt(actor, document.id, operation)
        return allowed

    def authorize_operation(
        self, document_id: UUID, operation: DocumentOperation, actor: Actor
    ) -> Document:
        """
        Carga el documento y exige `operation` para el actor.

        Raises:
            ForbiddenError: admin, o el actor ve el documento pero no tiene
                la autoridad que pide la operación.
            NotFoundError: el documento no existe o el actor no lo ve.
        """
        if actor.is_admin:
            self._audit_attempt(actor, document_id, operation, reason="admin")
            raise ForbiddenError(_MSG_ADMIN_FORBIDDEN)

        document = self._documents.find_by_id(document_id)
        if document is not None:
            if self.can_perform_operation_on_document(document, operation, actor):
                return document
            if self._grants.has_access_to_document(document, actor.type, actor.id):
                raise ForbiddenError(_forbidden_message(operation))
        else:
            self._audit_attempt(actor, document_id, operation)

        raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

    # =========================================================================
    # list_documents
    # =========================================================================

    def list_documents(
        self,
        actor: Actor,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        status: Optional[DocumentStatus | Sequence[DocumentStatus]] = None,
    ) -> DocumentPage:
        effective_limit = self._default_limit if limit is None else limit
        if skip < 0 or effective_limit < 1:
            raise BadRequestError(_MSG_INVALID_PAGINATION)
        effective_limit = min(effective_limit, self._max_limit)

        if actor.is_admin:
            return DocumentPage(data=[], total=0, skip=skip, limit=effective_limit)

        statuses = _normalize_statuses(status)

        # 1) Documentos de origen (solo managers con registro).
        reachable: dict[UUID, Document] = {}
        manager_id = self._authority.resolve_manager_authority(actor.type, actor.id)
        if manager_id is not None:
            origin_docs, _ = self._documents.find_by_origin_manager_id(
                manager_id, statuses=statuses
            )
            for document in origin_docs:
                reachable.setdefault(document.id, document)

        # 2) Documentos alcanzables por grants activos del actor.
        subject_type = SubjectType(actor.type.value)
        for grant in self._grants.get_active_grants_for_subject(subject_type, actor.id):
            if grant.document_id in reachable:
                continue
            document = self._documents.find_by_id(grant.document_id)
            if document is None:
                continue
            if statuses is not None and document.status not in statuses:
                continue
            reachable[document.id] = document

        documents = list(reachable.values())
        return DocumentPage(
            data=documents[skip : skip + effective_limit],
            total=len(documents),
            skip=skip,
            limit=effective_limit,
        )

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _audit_denied(self, actor: Actor, metadata: dict) -> None:
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.UNAUTHORIZED_DOCUMENT_ACCESS,
            success=False,
            metadata=metadata,
        )

    def _audit_attempt(
        self,
        actor: Actor,
        document_id: UUID,
        operation: DocumentOperation,
        *,
        reason: str | None = None,
    ) -> None:
        metadata: dict = {"document_id": document_id, "operation": operation}
        if reason is not None:
            metadata["reason"] = reason
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.UNAUTHORIZED_ACCESS_ATTEMPT,
            success=False,
            metadata=metadata,
        )


def _forbidden_message(operation: DocumentOperation) -> str:
    return f"Only the origin manager can perform '{operation.value}' on this document"


def _normalize_statuses(
    status: Optional[DocumentStatus | Sequence[DocumentStatus]],
) -> Optional[frozenset[DocumentStatus]]:
    if status is None:
        return None
    if isinstance(status, DocumentStatus):
        return frozenset({status})
    return frozenset(status) or None
