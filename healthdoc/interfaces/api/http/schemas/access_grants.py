"""
===============================================================================
TARJETA CRC — schemas/access_grants.py
===============================================================================

Módulo:
    Schemas HTTP para grants de acceso (alta, listado, detalle)

Responsabilidades:
    - DTOs de request/response para /v1/access-grants.
    - Convertir entidades de dominio a respuestas serializables.

Colaboradores:
    - domain.entities.AccessGrant / GrantType / SubjectType
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....domain.entities import AccessGrant, ActorType, GrantType, SubjectType


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class CreateAccessGrantReq(BaseModel):
    document_id: UUID
    subject_type: SubjectType
    subject_id: int = Field(..., ge=1)
    grant_type: GrantType = GrantType.DELEGATED


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class AccessGrantRes(BaseModel):
    id: int
    document_id: UUID
    subject_type: SubjectType
    subject_id: int
    grant_type: GrantType
    granted_by_type: ActorType
    granted_by_id: int
    created_at: datetime
    revoked_at: datetime | None = None

    @classmethod
    def from_entity(cls, grant: AccessGrant) -> "AccessGrantRes":
        return cls(
            id=grant.id,
            document_id=grant.document_id,
            subject_type=grant.subject_type,
            subject_id=grant.subject_id,
            grant_type=grant.grant_type,
            granted_by_type=grant.granted_by_type,
            granted_by_id=grant.granted_by_id,
            created_at=grant.created_at,
            revoked_at=grant.revoked_at,
        )


class AccessGrantsListRes(BaseModel):
    data: list[AccessGrantRes]
    has_next_page: bool
