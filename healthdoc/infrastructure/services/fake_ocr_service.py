"""
Name: Fake OCR Service (Deterministic Test Double)

Qué es
------
Implementación determinista de `OcrPort` para tests / desarrollo local.
No realiza llamadas externas (Document AI / Vision quedan fuera).

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: FakeOcrService
Responsibilities:
  - Devolver un OcrResult estable por URI (misma entrada -> mismo resultado)
  - Simular fallas para URIs marcadas (ejercitar PROCESSING -> FAILED)
Collaborators:
  - domain.services.OcrPort (contrato)
"""

from __future__ import annotations

import hashlib
from typing import Iterable

from ...domain.services import OcrResult


class OcrProviderError(RuntimeError):
    """Falla simulada del proveedor de OCR."""


class FakeOcrService:
    def __init__(self, failing_uris: Iterable[str] = ()) -> None:
        self._failing_uris = set(failing_uris)

    def fail_for(self, uri: str) -> None:
        self._failing_uris.add(uri)

    def extract(self, file_uri: str, mime_type: str) -> OcrResult:
        if file_uri in self._failing_uris:
            raise OcrProviderError("OCR provider rejected the document")

        digest = hashlib.sha256(file_uri.encode("utf-8")).digest()
        page_count = 1 + digest[0] % 5
        confidence = round(0.80 + (digest[1] % 20) / 100, 2)
        return OcrResult(
            text=f"fake-ocr:{digest.hex()[:16]}",
            page_count=page_count,
            confidence=confidence,
        )
