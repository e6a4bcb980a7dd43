"""
===============================================================================
TARJETA CRC — routers/access_grants.py
===============================================================================

Name:
    Access Grants Router

Responsibilities:
    - Endpoints HTTP para otorgar, listar y revocar grants.
    - Resolver el actor autenticado y delegar en la capa de aplicación.
    - Los errores tipados se traducen en exception_handlers.py.

Collaborators:
    - application.AccessGrantService (create / revoke)
    - application.usecases.ListAccessGrantsUseCase
    - schemas.access_grants
    - container factories
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from .....application import AccessGrantService, CreateAccessGrantInput
from .....application.usecases import GrantPage, ListAccessGrantsUseCase
from .....container import get_access_grant_service, get_list_access_grants_use_case
from .....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .....domain.entities import Actor, SubjectType
from ..dependencies import get_current_actor
from ..schemas.access_grants import (
    AccessGrantRes,
    AccessGrantsListRes,
    CreateAccessGrantReq,
)

router = APIRouter(
    prefix="/access-grants",
    tags=["access-grants"],
    responses=OPENAPI_ERROR_RESPONSES,
)


def _to_list_res(page: GrantPage) -> AccessGrantsListRes:
    return AccessGrantsListRes(
        data=[AccessGrantRes.from_entity(g) for g in page.data],
        has_next_page=page.has_next_page,
    )


@router.post("", response_model=AccessGrantRes, status_code=status.HTTP_201_CREATED)
def create_access_grant(
    req: CreateAccessGrantReq,
    actor: Actor = Depends(get_current_actor),
    service: AccessGrantService = Depends(get_access_grant_service),
) -> AccessGrantRes:
    grant = service.create_grant(
        CreateAccessGrantInput(
            document_id=req.document_id,
            subject_type=req.subject_type,
            subject_id=req.subject_id,
            grant_type=req.grant_type,
        ),
        actor,
    )
    return AccessGrantRes.from_entity(grant)


@router.get("", response_model=AccessGrantsListRes)
def list_access_grants(
    document_id: UUID | None = Query(default=None),
    subject_type: SubjectType | None = Query(default=None),
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    use_case: ListAccessGrantsUseCase = Depends(get_list_access_grants_use_case),
) -> AccessGrantsListRes:
    result = use_case.execute(
        actor=actor,
        document_id=document_id,
        subject_type=subject_type,
        page=page,
        limit=limit,
    )
    return _to_list_res(result)


@router.get("/mine", response_model=AccessGrantsListRes)
def list_my_access_grants(
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    use_case: ListAccessGrantsUseCase = Depends(get_list_access_grants_use_case),
) -> AccessGrantsListRes:
    return _to_list_res(use_case.get_my_grants(actor=actor, page=page, limit=limit))


@router.delete("/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_access_grant(
    grant_id: int,
    actor: Actor = Depends(get_current_actor),
    service: AccessGrantService = Depends(get_access_grant_service),
) -> Response:
    service.revoke_grant(grant_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
