"""
===============================================================================
TARJETA CRC — application/authority.py
===============================================================================

Clase:
    ManagerAuthorityResolver

Responsabilidades:
    - Traducir Actor.id (SIEMPRE un user id) al id de registro de manager
      que referencia Document.origin_manager_id.
    - Ser el ÚNICO punto donde se hace esa traducción (grants, acceso a
      documentos y orquestador lo reutilizan).

Colaboradores:
    - domain.repositories.ManagerRepository (find_by_user_id)
    - domain.authority (reglas puras de raíz de autoridad)

Notas:
    - Sin cache: cada decisión relee el directorio.
===============================================================================
"""

from __future__ import annotations

from ..domain.authority import is_origin_authority
from ..domain.entities import ActorType, Document
from ..domain.repositories import ManagerRepository


class ManagerAuthorityResolver:
    def __init__(self, manager_repository: ManagerRepository) -> None:
        self._managers = manager_repository

    def resolve_manager_authority(
        self, actor_type: ActorType, user_id: int
    ) -> int | None:
        """Id de registro de manager del actor, o None si no es manager / no tiene registro."""
        if actor_type != ActorType.MANAGER:
            return None
        manager = self._managers.find_by_user_id(user_id)
        return manager.id if manager is not None else None

    def is_origin_authority(
        self, document: Document, actor_type: ActorType, actor_id: int
    ) -> bool:
        # El directorio solo se consulta cuando puede cambiar la respuesta.
        resolved: int | None = None
        if document.origin_manager_id is not None and actor_type == ActorType.MANAGER:
            resolved = self.resolve_manager_authority(actor_type, actor_id)
        return is_origin_authority(document, actor_type, actor_id, resolved)
