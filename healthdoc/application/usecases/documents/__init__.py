"""
Casos de uso del orquestador de documentos.

"Subir es solo subir": ningún caso de uso dispara OCR implícitamente.
"""

from .assign_manager import AssignManagerUseCase
from .delete_document import DeleteDocumentUseCase
from .get_download_url import DownloadUrl, GetDownloadUrlUseCase
from .purge_expired_documents import PurgeExpiredDocumentsUseCase, PurgeResult
from .reset_failed_document import ResetFailedDocumentUseCase
from .trigger_ocr import TriggerOcrUseCase
from .upload_document import UploadDocumentUseCase

__all__ = [
    "AssignManagerUseCase",
    "DeleteDocumentUseCase",
    "DownloadUrl",
    "GetDownloadUrlUseCase",
    "PurgeExpiredDocumentsUseCase",
    "PurgeResult",
    "ResetFailedDocumentUseCase",
    "TriggerOcrUseCase",
    "UploadDocumentUseCase",
]
