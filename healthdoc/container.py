"""
===============================================================================
TARJETA CRC — healthdoc/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, servicios, adapters) siguiendo DIP.
  - Exponer factories para FastAPI (Depends) y para jobs (barrido de retención).
  - Mantener singletons con caching (lru_cache).
  - Centralizar decisiones runtime basadas en Settings (in-memory vs Postgres,
    S3 vs memoria, OCR fake).

Colaboradores:
  - healthdoc.crosscutting.config.get_settings
  - healthdoc.domain.repositories.* / healthdoc.domain.services.* (puertos)
  - healthdoc.infrastructure.* (implementaciones)
  - healthdoc.application.* (servicios y casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application import (
    AccessGrantService,
    DocumentAccessService,
    ManagerAuthorityResolver,
)
from .application.usecases import (
    AssignManagerUseCase,
    DeleteDocumentUseCase,
    GetDownloadUrlUseCase,
    ListAccessGrantsUseCase,
    PurgeExpiredDocumentsUseCase,
    ResetFailedDocumentUseCase,
    TriggerOcrUseCase,
    UploadDocumentUseCase,
)
from .crosscutting.config import get_settings
from .crosscutting.exceptions import ServiceUnavailableError
from .domain.repositories import (
    AccessGrantRepository,
    AuditEventRepository,
    DocumentRepository,
    ManagerRepository,
)
from .domain.services import BlobStoragePort, OcrPort
from .infrastructure.repositories.in_memory import (
    InMemoryAccessGrantRepository,
    InMemoryAuditEventRepository,
    InMemoryDocumentRepository,
    InMemoryManagerRepository,
)
from .infrastructure.repositories.postgres import (
    PostgresAccessGrantRepository,
    PostgresAuditEventRepository,
    PostgresDocumentRepository,
    PostgresManagerRepository,
)
from .infrastructure.services import FakeOcrService, InMemoryBlobStorage
from .infrastructure.storage import S3BlobStorage, S3Config

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => in-memory adapters."""
    return get_settings().is_test()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_access_grant_repository() -> AccessGrantRepository:
    if _is_test_env():
        return InMemoryAccessGrantRepository()
    return PostgresAccessGrantRepository()


@lru_cache(maxsize=1)
def get_document_repository() -> DocumentRepository:
    if _is_test_env():
        return InMemoryDocumentRepository()
    return PostgresDocumentRepository()


@lru_cache(maxsize=1)
def get_manager_repository() -> ManagerRepository:
    if _is_test_env():
        return InMemoryManagerRepository()
    return PostgresManagerRepository()


@lru_cache(maxsize=1)
def get_audit_repository() -> AuditEventRepository:
    if _is_test_env():
        return InMemoryAuditEventRepository()
    return PostgresAuditEventRepository()


# =============================================================================
# Servicios externos (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_blob_storage() -> BlobStoragePort:
    """S3/MinIO si hay bucket configurado; memoria en test / local."""
    settings = get_settings()
    if _is_test_env() or not settings.s3_bucket.strip():
        return InMemoryBlobStorage()
    return S3BlobStorage(
        S3Config(
            bucket=settings.s3_bucket,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            region=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint_url or None,
        )
    )


@lru_cache(maxsize=1)
def get_ocr_service() -> OcrPort:
    """
    Raises:
        ServiceUnavailableError: no hay proveedor de OCR configurado.
    """
    if _is_test_env() or get_settings().fake_ocr:
        return FakeOcrService()
    raise ServiceUnavailableError("No OCR provider is configured")


# =============================================================================
# Servicios de aplicación
# =============================================================================


def get_authority_resolver() -> ManagerAuthorityResolver:
    return ManagerAuthorityResolver(get_manager_repository())


def get_access_grant_service() -> AccessGrantService:
    return AccessGrantService(
        grant_repository=get_access_grant_repository(),
        document_repository=get_document_repository(),
        authority_resolver=get_authority_resolver(),
        audit_repository=get_audit_repository(),
    )


def get_document_access_service() -> DocumentAccessService:
    settings = get_settings()
    return DocumentAccessService(
        document_repository=get_document_repository(),
        grant_service=get_access_grant_service(),
        authority_resolver=get_authority_resolver(),
        audit_repository=get_audit_repository(),
        default_limit=settings.documents_default_limit,
        max_limit=settings.documents_max_limit,
    )


# =============================================================================
# Casos de uso
# =============================================================================


def get_list_access_grants_use_case() -> ListAccessGrantsUseCase:
    return ListAccessGrantsUseCase(
        grant_service=get_access_grant_service(),
        access_service=get_document_access_service(),
        authority_resolver=get_authority_resolver(),
        default_limit=get_settings().grants_default_limit,
    )


def get_upload_document_use_case() -> UploadDocumentUseCase:
    return UploadDocumentUseCase(
        document_repository=get_document_repository(),
        manager_repository=get_manager_repository(),
        blob_storage=get_blob_storage(),
        audit_repository=get_audit_repository(),
        max_upload_bytes=get_settings().max_upload_bytes,
    )


def get_trigger_ocr_use_case() -> TriggerOcrUseCase:
    return TriggerOcrUseCase(
        document_repository=get_document_repository(),
        access_service=get_document_access_service(),
        ocr=get_ocr_service(),
        audit_repository=get_audit_repository(),
    )


def get_reset_failed_document_use_case() -> ResetFailedDocumentUseCase:
    return ResetFailedDocumentUseCase(
        document_repository=get_document_repository(),
        access_service=get_document_access_service(),
        audit_repository=get_audit_repository(),
    )


def get_assign_manager_use_case() -> AssignManagerUseCase:
    return AssignManagerUseCase(
        document_repository=get_document_repository(),
        manager_repository=get_manager_repository(),
        grant_repository=get_access_grant_repository(),
        grant_service=get_access_grant_service(),
        audit_repository=get_audit_repository(),
    )


def get_delete_document_use_case() -> DeleteDocumentUseCase:
    return DeleteDocumentUseCase(
        document_repository=get_document_repository(),
        access_service=get_document_access_service(),
        audit_repository=get_audit_repository(),
        retention_years=get_settings().document_retention_years,
    )


def get_download_url_use_case() -> GetDownloadUrlUseCase:
    return GetDownloadUrlUseCase(
        access_service=get_document_access_service(),
        blob_storage=get_blob_storage(),
        audit_repository=get_audit_repository(),
        ttl_seconds=get_settings().download_url_ttl_seconds,
    )


def get_purge_expired_documents_use_case() -> PurgeExpiredDocumentsUseCase:
    return PurgeExpiredDocumentsUseCase(
        document_repository=get_document_repository(),
        blob_storage=get_blob_storage(),
        audit_repository=get_audit_repository(),
    )
