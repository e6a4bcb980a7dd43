"""
===============================================================================
MÓDULO: Excepciones tipadas del backend
===============================================================================

Objetivo
--------
Errores internos coherentes, con:
- error_code estable
- error_id para correlación con logs
- message "humana" (sin PHI ni secretos)

Taxonomía:
- NotFoundError:   entidad ausente, o presente pero sin acceso (lectura de
                   documentos). Nunca distingue ambos casos hacia el caller.
- ForbiddenError:  actor identificado sin la autoridad que pide la operación.
- BadRequestError: request válido que viola una regla de dominio (grant
                   duplicado, doble revocación, transición inválida).
- DatabaseError:   fallas de store; se propagan sin reintentos.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  HealthDocError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Generar error_id para rastreo

Colaboradores:
  - interfaces/api/http/exception_handlers.py (mapea a RFC 7807)
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Estructura mínima para responder errores de forma consistente."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class HealthDocError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      HealthDocError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message

    Colaboradores:
      - interfaces/api/http/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "HEALTHDOC_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class NotFoundError(HealthDocError):
    error_code: str = "NOT_FOUND"


class ForbiddenError(HealthDocError):
    error_code: str = "FORBIDDEN"


class BadRequestError(HealthDocError):
    error_code: str = "BAD_REQUEST"


class DuplicateActiveGrantError(BadRequestError):
    """El store rechazó un segundo grant activo para (documento, sujeto)."""

    error_code: str = "DUPLICATE_ACTIVE_GRANT"


class DatabaseError(HealthDocError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class StorageError(HealthDocError):
    """Errores del blob storage (adapter externo)."""

    error_code: str = "STORAGE_ERROR"


class ServiceUnavailableError(HealthDocError):
    """Colaborador externo no configurado o caído (ej: proveedor de OCR)."""

    error_code: str = "SERVICE_UNAVAILABLE"
