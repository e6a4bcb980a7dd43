"""
===============================================================================
SERVICE: Access-Grant Authority
===============================================================================

Business Goal:
    Ser el dueño del ciclo de vida de los grants (crear, revocar) y del
    predicado central `has_access`, que combina la autoridad implícita de
    origen con los grants explícitos.

Orden de resolución de `has_access` (gana el primero que matchea):
    1) Documento inexistente -> False (no se distingue de "sin acceso").
    2) Self-managed: acceso implícito si actor=user e id == origin_user_context_id.
    3) Con manager: acceso implícito si actor=manager y su registro (resuelto
       por user id) == origin_manager_id.
    4) Admin -> False, ANTES de mirar grants (un grant suelto no habilita).
    5) Grant activo para (documento, tipo de actor, id de actor).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    AccessGrantService

Responsibilities:
    - has_access / has_access_to_document.
    - create_grant: NotFound -> Forbidden -> BadRequest (origen) -> BadRequest (duplicado).
    - revoke_grant: NotFound -> BadRequest (ya revocado) -> Forbidden.
    - Lecturas directas (sin autorización propia).
    - Auditar cada creación / revocación con success flag.

Collaborators:
    - AccessGrantRepository / DocumentRepository / AuditEventRepository
    - ManagerAuthorityResolver

Notas:
    - La revocación NO es en cascada: revocar un grant `delegated` deja
      activos los `derived` que descienden de él.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, List, Optional
from uuid import UUID

from ..audit import emit_audit_event
from ..crosscutting.exceptions import (
    BadRequestError,
    DuplicateActiveGrantError,
    ForbiddenError,
    NotFoundError,
)
from ..crosscutting.logger import logger
from ..domain.audit import AuditEventKind
from ..domain.authority import subject_actor_type
from ..domain.entities import (
    AccessGrant,
    Actor,
    ActorType,
    Document,
    GrantType,
    NewAccessGrant,
    SubjectType,
)
from ..domain.repositories import (
    AccessGrantRepository,
    AuditEventRepository,
    DocumentRepository,
)
from .authority import ManagerAuthorityResolver

_MSG_DOCUMENT_NOT_FOUND: Final[str] = "Document not found"
_MSG_GRANT_NOT_FOUND: Final[str] = "Grant not found"
_MSG_GRANTOR_NO_ACCESS: Final[str] = "Grantor does not have access to this document"
_MSG_SUBJECT_IS_ORIGIN: Final[str] = (
    "Cannot create grant for origin manager (they have implicit access)"
)
_MSG_DUPLICATE_GRANT: Final[str] = (
    "Active grant already exists for this document and subject"
)
_MSG_ALREADY_REVOKED: Final[str] = "Grant is already revoked"
_MSG_REVOKER_NO_AUTHORITY: Final[str] = (
    "Revoker does not have authority to revoke this grant"
)


@dataclass(frozen=True, slots=True)
class CreateAccessGrantInput:
    document_id: UUID
    subject_type: SubjectType
    subject_id: int
    grant_type: GrantType = GrantType.DELEGATED


class AccessGrantService:
    def __init__(
        self,
        grant_repository: AccessGrantRepository,
        document_repository: DocumentRepository,
        authority_resolver: ManagerAuthorityResolver,
        audit_repository: AuditEventRepository | None = None,
    ) -> None:
        self._grants = grant_repository
        self._documents = document_repository
        self._authority = authority_resolver
        self._audit = audit_repository

    # =========================================================================
    # Predicado central
    # =========================================================================

    def has_access(self, document_id: UUID, actor_type: ActorType, actor_id: int) -> bool:
        document = self._documents.find_by_id(document_id)
        if document is None:
            return False
        return self.has_access_to_document(document, actor_type, actor_id)

    def has_access_to_document(
        self, document: Document, actor_type: ActorType, actor_id: int
    ) -> bool:
        """Pasos 2-5 de la resolución, sobre un documento ya cargado."""
        if self._authority.is_origin_authority(document, actor_type, actor_id):
            return True

        if actor_type == ActorType.ADMIN:
            return False

        grant = self._grants.find_active(
            document.id, SubjectType(actor_type.value), actor_id
        )
        return grant is not None

    # =========================================================================
    # Comandos
    # =========================================================================

    def create_grant(self, data: CreateAccessGrantInput, grantor: Actor) -> AccessGrant:
        """
        Crea un grant explícito.

        Raises:
            NotFoundError: el documento no existe.
            ForbiddenError: el grantor no tiene acceso al documento.
            BadRequestError: el sujeto es la raíz de autoridad, o ya tiene un grant activo.
        """
        audit_metadata = {
            "document_id": data.document_id,
            "subject_type": data.subject_type,
            "subject_id": data.subject_id,
            "grant_type": data.grant_type,
        }

        document = self._documents.find_by_id(data.document_id)
        if document is None:
            self._audit_grant(grantor, False, audit_metadata, reason="document_not_found")
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        if not self.has_access_to_document(document, grantor.type, grantor.id):
            self._audit_grant(grantor, False, audit_metadata, reason="grantor_no_access")
            raise ForbiddenError(_MSG_GRANTOR_NO_ACCESS)

        if self._authority.is_origin_authority(
            document, subject_actor_type(data.subject_type), data.subject_id
        ):
            self._audit_grant(grantor, False, audit_metadata, reason="subject_is_origin")
            raise BadRequestError(_MSG_SUBJECT_IS_ORIGIN)

        if (
            self._grants.find_active(data.document_id, data.subject_type, data.subject_id)
            is not None
        ):
            self._audit_grant(grantor, False, audit_metadata, reason="duplicate_grant")
            raise BadRequestError(_MSG_DUPLICATE_GRANT)

        try:
            grant = self._grants.create(
                NewAccessGrant(
                    document_id=data.document_id,
                    subject_type=data.subject_type,
                    subject_id=data.subject_id,
                    grant_type=data.grant_type,
                    granted_by_type=grantor.type,
                    granted_by_id=grantor.id,
                )
            )
        except DuplicateActiveGrantError:
            # Otro writer insertó entre el pre-check y el insert.
            self._audit_grant(grantor, False, audit_metadata, reason="duplicate_grant")
            raise

        logger.info(
            "Access grant created",
            extra={"grant_id": grant.id, "document_id": str(grant.document_id)},
        )
        self._audit_grant(grantor, True, {**audit_metadata, "grant_id": grant.id})
        return grant

    def revoke_grant(self, grant_id: int, revoker: Actor) -> None:
        """
        Revoca un grant activo (no en cascada).

        Raises:
            NotFoundError: el grant o su documento no existen.
            BadRequestError: el grant ya estaba revocado.
            ForbiddenError: el revoker no es la raíz de autoridad ni el grantor.
        """
        audit_metadata: dict = {"grant_id": grant_id}

        grant = self._grants.find_by_id(grant_id)
        if grant is None:
            self._audit_revoke(revoker, False, audit_metadata, reason="grant_not_found")
            raise NotFoundError(_MSG_GRANT_NOT_FOUND)

        audit_metadata["document_id"] = grant.document_id
        if not grant.is_active:
            self._audit_revoke(revoker, False, audit_metadata, reason="already_revoked")
            raise BadRequestError(_MSG_ALREADY_REVOKED)

        document = self._documents.find_by_id(grant.document_id, include_deleted=True)
        if document is None:
            self._audit_revoke(revoker, False, audit_metadata, reason="document_not_found")
            raise NotFoundError(_MSG_DOCUMENT_NOT_FOUND)

        is_origin = self._authority.is_origin_authority(document, revoker.type, revoker.id)
        if not is_origin and not grant.was_granted_by(revoker):
            self._audit_revoke(revoker, False, audit_metadata, reason="no_authority")
            raise ForbiddenError(_MSG_REVOKER_NO_AUTHORITY)

        if not self._grants.revoke(grant_id, revoker.type, revoker.id):
            # Revocado por otro request entre la lectura y la escritura.
            self._audit_revoke(revoker, False, audit_metadata, reason="already_revoked")
            raise BadRequestError(_MSG_ALREADY_REVOKED)

        logger.info("Access grant revoked", extra={"grant_id": grant_id})
        self._audit_revoke(revoker, True, audit_metadata)

    # =========================================================================
    # Lecturas (la autorización es responsabilidad del caller)
    # =========================================================================

    def get_active_grants(self, document_id: UUID) -> List[AccessGrant]:
        return self._grants.find_by_document_id(document_id, active_only=True)

    def get_active_grants_for_subject(
        self, subject_type: SubjectType, subject_id: int
    ) -> List[AccessGrant]:
        return self._grants.find_by_subject(subject_type, subject_id, active_only=True)

    def get_grant_by_id(self, grant_id: int) -> Optional[AccessGrant]:
        return self._grants.find_by_id(grant_id)

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _audit_grant(
        self, actor: Actor, success: bool, metadata: dict, *, reason: str | None = None
    ) -> None:
        self._emit(AuditEventKind.ACCESS_GRANTED, actor, success, metadata, reason)

    def _audit_revoke(
        self, actor: Actor, success: bool, metadata: dict, *, reason: str | None = None
    ) -> None:
        self._emit(AuditEventKind.ACCESS_REVOKED, actor, success, metadata, reason)

    def _emit(
        self,
        kind: AuditEventKind,
        actor: Actor,
        success: bool,
        metadata: dict,
        reason: str | None,
    ) -> None:
        payload = dict(metadata)
        if reason is not None:
            payload["reason"] = reason
        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=kind,
            success=success,
            metadata=payload,
        )
