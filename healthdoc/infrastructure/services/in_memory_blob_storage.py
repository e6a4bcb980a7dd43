"""
Name: In-Memory Blob Storage

Implementación de `BlobStoragePort` para tests / desarrollo local. Guarda
bytes en un dict protegido por lock y devuelve URIs `memory://<key>`.
"""

from __future__ import annotations

from threading import Lock
from typing import Dict
from urllib.parse import quote

from ...crosscutting.exceptions import StorageError

_SCHEME = "memory://"


class InMemoryBlobStorage:
    def __init__(self) -> None:
        self._lock = Lock()
        self._blobs: Dict[str, bytes] = {}

    def upload_file(self, key: str, content: bytes, mime_type: str) -> str:
        if not key:
            raise StorageError("Storage key is required")
        with self._lock:
            self._blobs[key] = bytes(content)
        return f"{_SCHEME}{key}"

    def delete_file(self, uri: str) -> None:
        if not uri.startswith(_SCHEME):
            raise StorageError("Unsupported storage URI")
        with self._lock:
            self._blobs.pop(uri[len(_SCHEME) :], None)

    def generate_download_url(
        self, uri: str, *, expires_in_seconds: int, filename: str | None = None
    ) -> str:
        if not uri.startswith(_SCHEME):
            raise StorageError("Unsupported storage URI")
        url = f"{uri}?expires_in={int(expires_in_seconds)}"
        if filename:
            url += f"&filename={quote(filename)}"
        return url

    def exists(self, uri: str) -> bool:
        with self._lock:
            return uri.startswith(_SCHEME) and uri[len(_SCHEME) :] in self._blobs
