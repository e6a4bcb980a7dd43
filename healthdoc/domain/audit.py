"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    Modelos de Auditoría (Dominio)

Responsabilidades:
    - Definir el contrato de evento de auditoría (AuditEvent).
    - Catálogo cerrado de tipos de evento (AuditEventKind).

Colaboradores:
    - domain.repositories.AuditEventRepository: persiste eventos.
    - healthdoc/audit.py: emite eventos (sanitiza metadata).

Notas:
    - Append-only.
    - metadata solo lleva ids, enums y nombres de operación (nunca PHI).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class AuditEventKind(str, Enum):
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    DOCUMENT_STORED = "DOCUMENT_STORED"
    DOCUMENT_ACCESSED = "DOCUMENT_ACCESSED"
    DOCUMENT_DOWNLOADED = "DOCUMENT_DOWNLOADED"
    UNAUTHORIZED_DOCUMENT_ACCESS = "UNAUTHORIZED_DOCUMENT_ACCESS"
    DOCUMENT_PROCESSING_STARTED = "DOCUMENT_PROCESSING_STARTED"
    DOCUMENT_PROCESSING_COMPLETED = "DOCUMENT_PROCESSING_COMPLETED"
    DOCUMENT_PROCESSING_FAILED = "DOCUMENT_PROCESSING_FAILED"
    DOCUMENT_PROCESSING_RETRY = "DOCUMENT_PROCESSING_RETRY"
    DOCUMENT_REPROCESSING_STARTED = "DOCUMENT_REPROCESSING_STARTED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"
    DOCUMENT_HARD_DELETED = "DOCUMENT_HARD_DELETED"
    ACCESS_GRANTED = "ACCESS_GRANTED"
    ACCESS_REVOKED = "ACCESS_REVOKED"
    ORIGIN_MANAGER_ASSIGNED = "ORIGIN_MANAGER_ASSIGNED"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UNAUTHORIZED_ACCESS_ATTEMPT"


@dataclass(slots=True)
class AuditEvent:
    """Evento de auditoría. actor_type/actor_id son None para el sistema."""

    id: UUID
    actor_type: str | None
    actor_id: int | None
    event_kind: AuditEventKind
    success: bool
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
