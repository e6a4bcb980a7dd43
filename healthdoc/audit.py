"""
===============================================================================
TARJETA CRC — healthdoc/audit.py (Emisión de auditoría)
===============================================================================

Responsabilidades:
  - Construir eventos de auditoría con formato consistente
    (actor_type/actor_id/event_kind/success/metadata).
  - Sanitizar metadata: sin PHI (solo ids, enums, nombres de operación).
  - Persistir vía AuditEventRepository (puerto del dominio).
  - "Fire-and-forget": si falla la persistencia, NO rompe el flujo de negocio.

Colaboradores:
  - healthdoc.domain.audit.AuditEvent / AuditEventKind
  - healthdoc.domain.repositories.AuditEventRepository
  - healthdoc.crosscutting.logger.logger

Decisiones de seguridad:
  - Claves que pueden contener PHI (nombres de archivo, texto, emails) se
    descartan completas.
  - Strings libres pasan por sanitize_phi (emails, tokens, SSN, teléfonos,
    secuencias largas de dígitos) y se truncan.
===============================================================================
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Final
from uuid import UUID, uuid4

from .crosscutting.logger import logger
from .domain.audit import AuditEvent, AuditEventKind
from .domain.entities import Actor
from .domain.repositories import AuditEventRepository

MAX_SANITIZED_LENGTH: Final[int] = 500

_PHI_KEYS: Final[frozenset[str]] = frozenset(
    {
        "file_name",
        "filename",
        "original_name",
        "text",
        "content",
        "ocr_text",
        "email",
        "display_name",
        "name",
        "first_name",
        "last_name",
    }
)

# El orden importa: tokens antes que secuencias de dígitos.
_PHI_PATTERNS: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"), "[EMAIL]"),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [TOKEN]"),
    (
        re.compile(r"\b(token|api[_-]?key|secret|password)\s*[=:]\s*\S+", re.IGNORECASE),
        r"\1=[REDACTED]",
    ),
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN]"),
    (re.compile(r"\+?\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}\b"), "[PHONE]"),
    (re.compile(r"\d{10,}"), "[NUMBER]"),
)


def sanitize_phi(value: str, *, max_length: int = MAX_SANITIZED_LENGTH) -> str:
    """Redacta patrones de PHI/secretos y trunca a `max_length`."""
    out = value
    for pattern, replacement in _PHI_PATTERNS:
        out = pattern.sub(replacement, out)
    if len(out) > max_length:
        out = out[: max_length - 3] + "..."
    return out


def _sanitize(value: Any) -> Any:
    """
    Convierte valores a tipos serializables y sin PHI.
    - primitives -> OK (strings por sanitize_phi)
    - UUID / Enum / datetime -> str
    - dict/list -> recursivo (claves PHI descartadas)
    """
    if isinstance(value, Enum):
        return value.value

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return sanitize_phi(value)

    if isinstance(value, dict):
        return {
            str(k): _sanitize(v)
            for k, v in value.items()
            if str(k).lower() not in _PHI_KEYS
        }

    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize(v) for v in value]

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    return sanitize_phi(str(value))


def emit_audit_event(
    repository: AuditEventRepository | None,
    *,
    actor: Actor | None,
    event_kind: AuditEventKind,
    success: bool,
    metadata: dict[str, Any] | None = None,
) -> None:
    """
    Emite un evento de auditoría.

    Regla clave:
      - Si repository es None o falla al escribir, NO se lanza excepción.
      - actor None = evento del sistema (ej: barrido de retención).
    """
    if repository is None:
        return

    event = AuditEvent(
        id=uuid4(),
        actor_type=actor.type.value if actor else None,
        actor_id=actor.id if actor else None,
        event_kind=event_kind,
        success=success,
        metadata=_sanitize(metadata or {}),
        created_at=datetime.now(timezone.utc),
    )

    try:
        repository.record_event(event)
    except Exception as exc:
        # Best-effort: logueamos y seguimos.
        logger.warning(
            "Falló la escritura del evento de auditoría",
            extra={"event_kind": event_kind.value, "error": str(exc)},
        )
