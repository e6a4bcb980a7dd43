"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Contratos para blob storage y OCR (provider-agnostic).
    - Mantener el dominio independiente de SDKs (GCS, Document AI, ...).

Colaboradores:
    - infrastructure/services/*: implementaciones concretas.
    - application/usecases/documents: consumen estos puertos.

Reglas:
    - SOLO interfaces: nada de implementación.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OcrResult:
    """Resultado de OCR. El texto extraído no sale de este objeto hacia logs."""

    text: str
    page_count: int
    confidence: float


class BlobStoragePort(Protocol):
    """Contrato para almacenamiento de archivos crudos."""

    def upload_file(self, key: str, content: bytes, mime_type: str) -> str:
        """Sube el archivo y devuelve su URI."""
        ...

    def delete_file(self, uri: str) -> None:
        ...

    def generate_download_url(
        self, uri: str, *, expires_in_seconds: int, filename: str | None = None
    ) -> str:
        """URL temporal de descarga directa (el backend no hace de proxy)."""
        ...


class OcrPort(Protocol):
    """Contrato para extracción de texto."""

    def extract(self, file_uri: str, mime_type: str) -> OcrResult:
        ...
