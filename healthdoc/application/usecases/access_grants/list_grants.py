"""
===============================================================================
USE CASE: List Access Grants
===============================================================================

Business Goal:
    Listar grants activos con la misma regla de visibilidad que el acceso a
    documentos: sin oráculo de existencia y sin exponer grants de terceros a
    quien no es raíz de autoridad.

Reglas:
    - Admin -> 403.
    - Con document_id: el actor debe poder ver el documento (si no, 404).
      La raíz de autoridad ve todos los grants activos; el resto solo los que
      lo nombran como sujeto.
    - Sin document_id: los grants activos que nombran al actor ("mine").
    - Paginación por página (page >= 1), {data, has_next_page}.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ListAccessGrantsUseCase

Collaborators:
    - AccessGrantService (lecturas)
    - DocumentAccessService (get_document)
    - ManagerAuthorityResolver (is_origin_authority)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, List, Optional
from uuid import UUID

from ....crosscutting.exceptions import BadRequestError, ForbiddenError
from ....domain.entities import AccessGrant, Actor, SubjectType
from ...access_grants import AccessGrantService
from ...authority import ManagerAuthorityResolver
from ...document_access import DocumentAccessService

_MSG_ADMIN_FORBIDDEN: Final[str] = "Admins do not have document-level access"
_MSG_INVALID_PAGINATION: Final[str] = "page and limit must be >= 1"

DEFAULT_GRANTS_LIMIT: Final[int] = 20


@dataclass
class GrantPage:
    data: List[AccessGrant] = field(default_factory=list)
    has_next_page: bool = False


class ListAccessGrantsUseCase:
    def __init__(
        self,
        grant_service: AccessGrantService,
        access_service: DocumentAccessService,
        authority_resolver: ManagerAuthorityResolver,
        *,
        default_limit: int = DEFAULT_GRANTS_LIMIT,
    ) -> None:
        self._grants = grant_service
        self._access = access_service
        self._authority = authority_resolver
        self._default_limit = default_limit

    def execute(
        self,
        *,
        actor: Actor,
        document_id: Optional[UUID] = None,
        subject_type: Optional[SubjectType] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> GrantPage:
        if actor.is_admin:
            raise ForbiddenError(_MSG_ADMIN_FORBIDDEN)

        limit = self._default_limit if limit is None else limit
        if page < 1 or limit < 1:
            raise BadRequestError(_MSG_INVALID_PAGINATION)

        if document_id is None:
            grants = self._own_grants(actor)
        else:
            document = self._access.get_document(document_id, actor)
            grants = self._grants.get_active_grants(document_id)
            if not self._authority.is_origin_authority(document, actor.type, actor.id):
                grants = [g for g in grants if _names_actor(g, actor)]

        if subject_type is not None:
            grants = [g for g in grants if g.subject_type == subject_type]

        start = (page - 1) * limit
        return GrantPage(
            data=grants[start : start + limit],
            has_next_page=len(grants) > start + limit,
        )

    def get_my_grants(
        self, *, actor: Actor, page: int = 1, limit: Optional[int] = None
    ) -> GrantPage:
        return self.execute(actor=actor, page=page, limit=limit)

    def _own_grants(self, actor: Actor) -> List[AccessGrant]:
        return self._grants.get_active_grants_for_subject(
            SubjectType(actor.type.value), actor.id
        )


def _names_actor(grant: AccessGrant, actor: Actor) -> bool:
    return grant.subject_type.value == actor.type.value and grant.subject_id == actor.id
