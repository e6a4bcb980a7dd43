"""
USE CASE: Get Download URL

Emite una URL firmada y temporal para el archivo original. Misma autoridad
que ver el documento (raíz de autoridad o grant activo); el backend nunca
transporta el binario.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from uuid import UUID

from ....audit import emit_audit_event
from ....crosscutting.exceptions import NotFoundError
from ....domain.audit import AuditEventKind
from ....domain.entities import Actor, DocumentOperation
from ....domain.repositories import AuditEventRepository
from ....domain.services import BlobStoragePort
from ...document_access import DocumentAccessService

_MSG_FILE_NOT_AVAILABLE: Final[str] = "Document file not available"

DEFAULT_TTL_SECONDS: Final[int] = 24 * 60 * 60


@dataclass(frozen=True)
class DownloadUrl:
    url: str
    expires_in: int


class GetDownloadUrlUseCase:
    def __init__(
        self,
        access_service: DocumentAccessService,
        blob_storage: BlobStoragePort,
        audit_repository: AuditEventRepository | None = None,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._access = access_service
        self._storage = blob_storage
        self._audit = audit_repository
        self._ttl_seconds = ttl_seconds

    def execute(self, *, document_id: UUID, actor: Actor) -> DownloadUrl:
        """
        Raises:
            ForbiddenError: el actor es admin.
            NotFoundError: el documento no existe, el actor no lo ve, o no
                tiene archivo almacenado.
            StorageError: el storage no pudo firmar la URL.
        """
        document = self._access.authorize_operation(
            document_id, DocumentOperation.DOWNLOAD, actor
        )
        if not document.raw_file_uri:
            raise NotFoundError(_MSG_FILE_NOT_AVAILABLE)

        url = self._storage.generate_download_url(
            document.raw_file_uri,
            expires_in_seconds=self._ttl_seconds,
            filename=document.file_name,
        )

        emit_audit_event(
            self._audit,
            actor=actor,
            event_kind=AuditEventKind.DOCUMENT_DOWNLOADED,
            success=True,
            metadata={"document_id": document_id},
        )
        return DownloadUrl(url=url, expires_in=self._ttl_seconds)
