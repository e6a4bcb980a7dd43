"""
===============================================================================
TARJETA CRC — schemas/documents.py
===============================================================================

Módulo:
    Schemas HTTP para documentos (detalle, listados, acciones de ciclo de vida)

Responsabilidades:
    - DTOs de request/response para /v1/documents (detalle, estado, descarga).
    - No exponer el URI del blob ni el texto extraído.

Colaboradores:
    - domain.entities.Document / DocumentStatus
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .....domain.document_state_machine import DocumentStateMachine
from .....domain.entities import Document, DocumentStatus


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class AssignManagerReq(BaseModel):
    manager_id: int = Field(..., ge=1, description="Id del registro de manager")


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class DocumentRes(BaseModel):
    id: UUID
    status: DocumentStatus
    origin_manager_id: int | None = None
    origin_user_context_id: int | None = None
    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    page_count: int | None = None
    confidence: float | None = None
    error_message: str | None = None
    retry_count: int = 0
    uploaded_at: datetime | None = None
    processing_started_at: datetime | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, document: Document) -> "DocumentRes":
        return cls(
            id=document.id,
            status=document.status,
            origin_manager_id=document.origin_manager_id,
            origin_user_context_id=document.origin_user_context_id,
            file_name=document.file_name,
            file_size=document.file_size,
            mime_type=document.mime_type,
            page_count=document.page_count,
            confidence=document.confidence,
            error_message=document.error_message,
            retry_count=document.retry_count,
            uploaded_at=document.uploaded_at,
            processing_started_at=document.processing_started_at,
            processed_at=document.processed_at,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class DocumentsListRes(BaseModel):
    data: list[DocumentRes]
    total: int
    skip: int
    limit: int


class DeleteDocumentRes(BaseModel):
    deleted: bool = True
    scheduled_deletion_at: datetime


class DocumentStatusRes(BaseModel):
    id: UUID
    status: DocumentStatus
    progress: int = Field(..., ge=0, le=100, description="Progreso estimado (0-100)")
    processing_started_at: datetime | None = None
    processed_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def from_entity(cls, document: Document) -> "DocumentStatusRes":
        return cls(
            id=document.id,
            status=document.status,
            progress=DocumentStateMachine.progress(document.status),
            processing_started_at=document.processing_started_at,
            processed_at=document.processed_at,
            error_message=document.error_message,
        )


class DownloadUrlRes(BaseModel):
    download_url: str
    expires_in: int = Field(..., description="Segundos hasta que la URL expira")
