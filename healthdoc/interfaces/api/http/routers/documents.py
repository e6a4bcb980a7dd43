"""
===============================================================================
TARJETA CRC — routers/documents.py
===============================================================================

Name:
    Documents Router

Responsibilities:
    - Endpoints HTTP del ciclo de vida de documentos (upload, listado, detalle,
      estado, URL de descarga, OCR, reset, asignación de manager, borrado).
    - Validaciones de borde (tamaño de upload, filename).
    - Los errores tipados se traducen en exception_handlers.py.

Collaborators:
    - application.DocumentAccessService (get / list)
    - application.usecases: Upload/TriggerOcr/Reset/AssignManager/Delete/Download
    - schemas.documents
    - container factories
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from .....application import DocumentAccessService
from .....application.usecases import (
    AssignManagerUseCase,
    DeleteDocumentUseCase,
    GetDownloadUrlUseCase,
    ResetFailedDocumentUseCase,
    TriggerOcrUseCase,
    UploadDocumentUseCase,
)
from .....container import (
    get_assign_manager_use_case,
    get_delete_document_use_case,
    get_document_access_service,
    get_download_url_use_case,
    get_reset_failed_document_use_case,
    get_trigger_ocr_use_case,
    get_upload_document_use_case,
)
from .....crosscutting.config import get_settings
from .....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .....domain.entities import Actor, DocumentStatus
from ..dependencies import get_current_actor, read_upload_bytes, sanitize_filename
from ..schemas.documents import (
    AssignManagerReq,
    DeleteDocumentRes,
    DocumentRes,
    DocumentsListRes,
    DocumentStatusRes,
    DownloadUrlRes,
)

router = APIRouter(
    prefix="/documents",
    tags=["documents"],
    responses=OPENAPI_ERROR_RESPONSES,
)


@router.post("", response_model=DocumentRes, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    origin_manager_user_id: int | None = Form(default=None),
    actor: Actor = Depends(get_current_actor),
    use_case: UploadDocumentUseCase = Depends(get_upload_document_use_case),
) -> DocumentRes:
    content = await read_upload_bytes(file, max_bytes=get_settings().max_upload_bytes)
    document = use_case.execute(
        actor=actor,
        content=content,
        file_name=sanitize_filename(file.filename),
        mime_type=file.content_type or "application/octet-stream",
        origin_manager_user_id=origin_manager_user_id,
    )
    return DocumentRes.from_entity(document)


@router.get("", response_model=DocumentsListRes)
def list_documents(
    skip: int = Query(default=0),
    limit: int | None = Query(default=None),
    status_filter: list[DocumentStatus] | None = Query(default=None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: DocumentAccessService = Depends(get_document_access_service),
) -> DocumentsListRes:
    page = service.list_documents(actor, skip=skip, limit=limit, status=status_filter)
    return DocumentsListRes(
        data=[DocumentRes.from_entity(d) for d in page.data],
        total=page.total,
        skip=page.skip,
        limit=page.limit,
    )


@router.get("/{document_id}", response_model=DocumentRes)
def get_document(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: DocumentAccessService = Depends(get_document_access_service),
) -> DocumentRes:
    return DocumentRes.from_entity(service.get_document(document_id, actor))


@router.get("/{document_id}/status", response_model=DocumentStatusRes)
def get_document_status(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: DocumentAccessService = Depends(get_document_access_service),
) -> DocumentStatusRes:
    return DocumentStatusRes.from_entity(service.get_document(document_id, actor))


@router.get("/{document_id}/download", response_model=DownloadUrlRes)
def get_download_url(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    use_case: GetDownloadUrlUseCase = Depends(get_download_url_use_case),
) -> DownloadUrlRes:
    result = use_case.execute(document_id=document_id, actor=actor)
    return DownloadUrlRes(download_url=result.url, expires_in=result.expires_in)


@router.post("/{document_id}/ocr/trigger", response_model=DocumentRes)
def trigger_ocr(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    use_case: TriggerOcrUseCase = Depends(get_trigger_ocr_use_case),
) -> DocumentRes:
    return DocumentRes.from_entity(
        use_case.execute(document_id=document_id, actor=actor)
    )


@router.post("/{document_id}/reset", response_model=DocumentRes)
def reset_failed_document(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    use_case: ResetFailedDocumentUseCase = Depends(get_reset_failed_document_use_case),
) -> DocumentRes:
    return DocumentRes.from_entity(
        use_case.execute(document_id=document_id, actor=actor)
    )


@router.post("/{document_id}/assign-manager", response_model=DocumentRes)
def assign_manager(
    document_id: UUID,
    req: AssignManagerReq,
    actor: Actor = Depends(get_current_actor),
    use_case: AssignManagerUseCase = Depends(get_assign_manager_use_case),
) -> DocumentRes:
    document = use_case.execute(
        document_id=document_id, actor=actor, manager_id=req.manager_id
    )
    return DocumentRes.from_entity(document)


@router.delete("/{document_id}", response_model=DeleteDocumentRes)
def delete_document(
    document_id: UUID,
    actor: Actor = Depends(get_current_actor),
    use_case: DeleteDocumentUseCase = Depends(get_delete_document_use_case),
) -> DeleteDocumentRes:
    scheduled = use_case.execute(document_id=document_id, actor=actor)
    return DeleteDocumentRes(scheduled_deletion_at=scheduled)
