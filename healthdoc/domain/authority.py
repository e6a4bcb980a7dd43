"""
===============================================================================
TARJETA CRC — domain/authority.py
===============================================================================

Módulo:
    Política de autoridad de origen (reglas puras)

Responsabilidades:
    - Decidir si un actor es la raíz de autoridad de un documento, dado el
      id de registro de manager ya resuelto (sin DB).
    - Decidir si un sujeto de grant coincide con esa raíz.
    - Matriz de operaciones (quién puede trigger-ocr / delete / view).

Colaboradores:
    - application.authority.ManagerAuthorityResolver: resuelve el id de manager.
    - application.access_grants / application.document_access.

Reglas:
    - Admin nunca tiene autoridad a nivel documento.
    - Documento self-managed: la raíz es el usuario que lo subió
      (actor type=user e id == origin_user_context_id).
    - Documento con manager: la raíz es el actor manager cuyo registro
      (resuelto por user id) == origin_manager_id.
===============================================================================
"""

from __future__ import annotations

from typing import Final

from .entities import ActorType, Document, DocumentOperation, SubjectType

# Operaciones reservadas a la raíz de autoridad.
ORIGIN_ONLY_OPERATIONS: Final[frozenset[DocumentOperation]] = frozenset(
    {DocumentOperation.TRIGGER_OCR, DocumentOperation.DELETE}
)


def is_self_managed_uploader(
    document: Document, actor_type: ActorType, actor_id: int
) -> bool:
    return (
        document.origin_manager_id is None
        and actor_type == ActorType.USER
        and document.origin_user_context_id is not None
        and actor_id == document.origin_user_context_id
    )


def is_origin_manager(document: Document, resolved_manager_id: int | None) -> bool:
    return (
        document.origin_manager_id is not None
        and resolved_manager_id is not None
        and resolved_manager_id == document.origin_manager_id
    )


def is_origin_authority(
    document: Document,
    actor_type: ActorType,
    actor_id: int,
    resolved_manager_id: int | None,
) -> bool:
    """
    True si (actor_type, actor_id) es la raíz de autoridad del documento.

    `resolved_manager_id` debe venir del Manager Directory para actores
    manager (None para los demás).
    """
    if actor_type == ActorType.ADMIN:
        return False
    if document.origin_manager_id is None:
        return is_self_managed_uploader(document, actor_type, actor_id)
    if actor_type != ActorType.MANAGER:
        return False
    return is_origin_manager(document, resolved_manager_id)


def subject_actor_type(subject_type: SubjectType) -> ActorType:
    return ActorType(subject_type.value)


def requires_origin_authority(operation: DocumentOperation) -> bool:
    return operation in ORIGIN_ONLY_OPERATIONS
