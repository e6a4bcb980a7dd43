"""
===============================================================================
CRC CARD — infrastructure/storage/s3_blob_storage.py
===============================================================================

Clase:
  S3BlobStorage (Adapter)

Responsabilidades:
  - Implementar BlobStoragePort contra S3-compatible (AWS S3 / MinIO).
  - Encapsular boto3 (NO filtrar ClientError hacia arriba).
  - Firmar URLs temporales de descarga (get_object presigned).
  - Devolver URIs `s3://<bucket>/<key>` que el resto del sistema trata
    como opacas.

Colaboradores:
  - domain.services.BlobStoragePort (port)
  - crosscutting.exceptions.StorageError
  - boto3 / botocore (SDK, oculto por este adapter)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ...crosscutting.exceptions import StorageError
from ...crosscutting.logger import logger


@dataclass(frozen=True)
class S3Config:
    bucket: str
    access_key: str
    secret_key: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None


class S3BlobStorage:
    def __init__(self, config: S3Config, *, client=None) -> None:
        self._bucket = (config.bucket or "").strip()
        if not self._bucket:
            raise StorageError("S3 bucket es requerido.")

        # Cliente inyectable para tests (mocks).
        self._client = client or boto3.client(
            "s3",
            aws_access_key_id=config.access_key or None,
            aws_secret_access_key=config.secret_key or None,
            region_name=config.region or None,
            endpoint_url=config.endpoint_url or None,
        )

    def upload_file(self, key: str, content: bytes, mime_type: str) -> str:
        if not (key or "").strip():
            raise StorageError("key de storage es requerido.")
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=(mime_type or "application/octet-stream").strip(),
            )
        except Exception as exc:
            raise self._map_storage_error(exc, action="upload") from exc
        return f"s3://{self._bucket}/{key}"

    def delete_file(self, uri: str) -> None:
        """Idempotente: borrar algo inexistente no falla en S3."""
        key = self._key_from_uri(uri)
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except Exception as exc:
            raise self._map_storage_error(exc, action="delete") from exc

    def generate_download_url(
        self,
        uri: str,
        *,
        expires_in_seconds: int = 3600,
        filename: str | None = None,
    ) -> str:
        """URL firmada de `get_object`; el cliente descarga directo del bucket."""
        if expires_in_seconds <= 0:
            expires_in_seconds = 3600

        params: dict = {"Bucket": self._bucket, "Key": self._key_from_uri(uri)}
        if filename:
            safe_name = filename.replace('"', "'")
            params["ResponseContentDisposition"] = f'attachment; filename="{safe_name}"'

        try:
            url = self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=int(expires_in_seconds),
            )
        except Exception as exc:
            raise self._map_storage_error(exc, action="presign") from exc
        return str(url)

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _key_from_uri(self, uri: str) -> str:
        prefix = f"s3://{self._bucket}/"
        if not uri.startswith(prefix):
            raise StorageError("URI de storage inválida para este bucket.")
        return uri[len(prefix) :]

    def _map_storage_error(self, exc: Exception, *, action: str) -> StorageError:
        """Traduce errores del SDK a StorageError (sin keys: pueden contener PHI)."""
        if isinstance(
            exc, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)
        ):
            logger.warning("Storage unavailable", extra={"action": action})
            return StorageError("Storage no disponible (timeout/conexión).")

        if isinstance(exc, ClientError):
            code = str((exc.response.get("Error") or {}).get("Code") or "")
            logger.warning(
                "Storage ClientError", extra={"action": action, "code": code}
            )
            return StorageError(f"Fallo de storage ({action}). code={code}")

        logger.exception("Storage error", extra={"action": action})
        return StorageError(f"Fallo de storage ({action}).")
