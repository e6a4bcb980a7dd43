from .access_grants import GrantPage, ListAccessGrantsUseCase
from .documents import (
    AssignManagerUseCase,
    DeleteDocumentUseCase,
    DownloadUrl,
    GetDownloadUrlUseCase,
    PurgeExpiredDocumentsUseCase,
    PurgeResult,
    ResetFailedDocumentUseCase,
    TriggerOcrUseCase,
    UploadDocumentUseCase,
)

__all__ = [
    "AssignManagerUseCase",
    "DeleteDocumentUseCase",
    "DownloadUrl",
    "GetDownloadUrlUseCase",
    "GrantPage",
    "ListAccessGrantsUseCase",
    "PurgeExpiredDocumentsUseCase",
    "PurgeResult",
    "ResetFailedDocumentUseCase",
    "TriggerOcrUseCase",
    "UploadDocumentUseCase",
]
