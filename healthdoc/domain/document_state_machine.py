"""
===============================================================================
TARJETA CRC — domain/document_state_machine.py
===============================================================================

Módulo:
    Máquina de estados del ciclo de vida de un documento (OCR)

Responsabilidades:
    - Tabla estática de transiciones válidas.
    - Validar transiciones con un mensaje que nombra el par y los destinos.
    - Predicados de elegibilidad: can_process / can_retry / is_terminal.
    - Porcentaje de progreso por estado (endpoint de estado).

Colaboradores:
    - application/usecases/documents: consultan antes de cada escritura de estado.

Reglas:
    - "Subir es solo subir": nada transiciona a PROCESSING como efecto de
      almacenar. Toda entrada a PROCESSING es un trigger explícito o un retry.
    - Mismo estado => válido (no-op), INCLUSO en ARCHIVED. Se evalúa antes
      que el bloqueo del estado terminal.
    - ARCHIVED es terminal: ninguna transición hacia otro estado.
===============================================================================
"""

from __future__ import annotations

from typing import Final, Mapping

from ..crosscutting.exceptions import BadRequestError
from .entities import DocumentStatus

_S = DocumentStatus

_VALID_TRANSITIONS: Final[Mapping[DocumentStatus, frozenset[DocumentStatus]]] = {
    _S.UPLOADED: frozenset({_S.PROCESSING, _S.FAILED}),
    _S.STORED: frozenset({_S.PROCESSING, _S.FAILED}),
    _S.QUEUED: frozenset({_S.PROCESSING, _S.FAILED}),
    _S.PROCESSING: frozenset({_S.PROCESSED, _S.FAILED}),
    _S.PROCESSED: frozenset({_S.PROCESSING}),
    _S.FAILED: frozenset({_S.PROCESSING, _S.STORED}),
    _S.ARCHIVED: frozenset(),
}

_TERMINAL_STATES: Final[frozenset[DocumentStatus]] = frozenset({_S.ARCHIVED})

_PROCESSABLE_STATES: Final[frozenset[DocumentStatus]] = frozenset(
    {_S.UPLOADED, _S.STORED, _S.PROCESSED, _S.FAILED}
)

# Progreso aproximado (0-100) expuesto por el endpoint de estado.
_PROGRESS: Final[Mapping[DocumentStatus, int]] = {
    _S.UPLOADED: 10,
    _S.STORED: 20,
    _S.QUEUED: 30,
    _S.PROCESSING: 50,
    _S.PROCESSED: 100,
    _S.FAILED: 0,
    _S.ARCHIVED: 100,
}

# Orden estable para mensajes (el de declaración del enum).
_STATUS_ORDER: Final[tuple[DocumentStatus, ...]] = tuple(DocumentStatus)


class DocumentStateMachine:
    """Funciones puras sobre la tabla de transiciones (sin estado de instancia)."""

    @staticmethod
    def is_valid_transition(from_status: DocumentStatus, to_status: DocumentStatus) -> bool:
        if from_status == to_status:
            return True
        if from_status in _TERMINAL_STATES:
            return False
        return to_status in _VALID_TRANSITIONS.get(from_status, frozenset())

    @classmethod
    def validate_transition(
        cls, from_status: DocumentStatus, to_status: DocumentStatus
    ) -> None:
        """
        Raises:
            BadRequestError: si la transición no es válida.
        """
        if cls.is_valid_transition(from_status, to_status):
            return
        targets = cls.get_valid_target_states(from_status)
        valid = ", ".join(s.value for s in targets) if targets else "none"
        raise BadRequestError(
            f"Invalid state transition: {from_status.value} → {to_status.value}. "
            f"Valid transitions from {from_status.value}: {valid}"
        )

    @staticmethod
    def get_valid_target_states(from_status: DocumentStatus) -> list[DocumentStatus]:
        allowed = _VALID_TRANSITIONS.get(from_status, frozenset())
        return [s for s in _STATUS_ORDER if s in allowed]

    @staticmethod
    def is_terminal(status: DocumentStatus) -> bool:
        return status in _TERMINAL_STATES

    @staticmethod
    def can_process(status: DocumentStatus) -> bool:
        """True si el documento admite un trigger explícito de OCR."""
        return status in _PROCESSABLE_STATES

    @staticmethod
    def can_retry(status: DocumentStatus) -> bool:
        return status == _S.FAILED

    @staticmethod
    def progress(status: DocumentStatus) -> int:
        return _PROGRESS.get(status, 0)
