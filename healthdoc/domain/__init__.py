"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .audit import AuditEvent, AuditEventKind
from .document_state_machine import DocumentStateMachine
from .entities import (
    AccessGrant,
    Actor,
    ActorType,
    Document,
    DocumentOperation,
    DocumentStatus,
    GrantType,
    Manager,
    ManagerVerificationStatus,
    NewAccessGrant,
    SubjectType,
)
from .repositories import (
    AccessGrantRepository,
    AuditEventRepository,
    DocumentRepository,
    ManagerRepository,
)
from .services import BlobStoragePort, OcrPort, OcrResult

__all__ = [
    # Entities
    "AccessGrant",
    "Actor",
    "ActorType",
    "Document",
    "DocumentOperation",
    "DocumentStatus",
    "GrantType",
    "Manager",
    "ManagerVerificationStatus",
    "NewAccessGrant",
    "SubjectType",
    # Audit
    "AuditEvent",
    "AuditEventKind",
    # State machine
    "DocumentStateMachine",
    # Repository Interfaces (Ports)
    "AccessGrantRepository",
    "AuditEventRepository",
    "DocumentRepository",
    "ManagerRepository",
    # Service Interfaces (Ports)
    "BlobStoragePort",
    "OcrPort",
    "OcrResult",
]
