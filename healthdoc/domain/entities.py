"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (Actor, Manager, Document, AccessGrant)

Responsabilidades:
    - Definir estructuras centrales del negocio (sin infraestructura).
    - Catálogos cerrados (enums) para tipos de actor, sujeto, grant y estado.
    - Helpers mínimos para invariantes simples (is_active, is_self_managed).

Colaboradores:
    - domain.repositories: persisten/recuperan estas entidades.
    - application: construye/consume estas entidades.
    - interfaces/api: serializa DTOs basados en estas entidades.

Invariantes:
    - Actor.id es SIEMPRE un id de usuario (también cuando type=manager).
    - Document.origin_manager_id es inmutable una vez asignado.
    - Todo documento tiene exactamente una raíz de autoridad: un manager
      verificado (origin_manager_id) o el usuario que lo subió
      (origin_user_context_id, cuando origin_manager_id es None).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


def _utcnow() -> datetime:
    """Fecha/hora UTC (helper interno)."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Catálogos
# ---------------------------------------------------------------------------


class ActorType(str, Enum):
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class SubjectType(str, Enum):
    """Tipos de sujeto que pueden recibir un grant (admin nunca)."""

    USER = "user"
    MANAGER = "manager"


class GrantType(str, Enum):
    """Procedencia de la autoridad. Informativo: no hay revocación en cascada."""

    OWNER = "owner"
    DELEGATED = "delegated"
    DERIVED = "derived"


class DocumentStatus(str, Enum):
    UPLOADED = "UPLOADED"
    STORED = "STORED"
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"
    ARCHIVED = "ARCHIVED"


class DocumentOperation(str, Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    TRIGGER_OCR = "trigger-ocr"
    DELETE = "delete"


class ManagerVerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    SUSPENDED = "suspended"


# ---------------------------------------------------------------------------
# Actor
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Actor:
    """Identidad efímera que ejecuta una operación (type + user id)."""

    type: ActorType
    id: int

    @property
    def is_admin(self) -> bool:
        return self.type == ActorType.ADMIN


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


@dataclass
class Manager:
    """
    Registro de manager. `id` es el id del registro (no del usuario);
    `user_id` es el usuario dueño del registro.
    """

    id: int
    user_id: int
    display_name: str = ""
    verification_status: ManagerVerificationStatus = ManagerVerificationStatus.PENDING
    created_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.verification_status == ManagerVerificationStatus.VERIFIED


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


@dataclass
class Document:
    """
    Documento de salud (metadata + estado). El contenido vive en el blob storage.
    """

    id: UUID
    origin_manager_id: Optional[int] = None
    origin_user_context_id: Optional[int] = None
    status: DocumentStatus = DocumentStatus.UPLOADED

    # Metadatos de archivo
    raw_file_uri: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None

    # Resultado de OCR
    page_count: Optional[int] = None
    confidence: Optional[float] = None
    error_message: Optional[str] = None
    retry_count: int = 0

    # Tiempos
    uploaded_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    scheduled_deletion_at: Optional[datetime] = None

    @property
    def is_self_managed(self) -> bool:
        return self.origin_manager_id is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


# ---------------------------------------------------------------------------
# AccessGrant
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NewAccessGrant:
    """Grant a persistir (sin id ni created_at: los asigna el store)."""

    document_id: UUID
    subject_type: SubjectType
    subject_id: int
    grant_type: GrantType
    granted_by_type: ActorType
    granted_by_id: int


@dataclass
class AccessGrant:
    """
    Acceso explícito y revocable a un documento.

    Ciclo de vida: activo -> revocado (una sola vez). Nunca se borra.
    """

    id: int
    document_id: UUID
    subject_type: SubjectType
    subject_id: int
    grant_type: GrantType
    granted_by_type: ActorType
    granted_by_id: int
    created_at: datetime
    revoked_at: Optional[datetime] = None
    revoked_by_type: Optional[ActorType] = None
    revoked_by_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None

    def was_granted_by(self, actor: Actor) -> bool:
        return self.granted_by_type == actor.type and self.granted_by_id == actor.id
