"""
Capa de aplicación: servicios de autoridad / acceso y casos de uso.
"""

from .access_grants import AccessGrantService, CreateAccessGrantInput
from .authority import ManagerAuthorityResolver
from .document_access import DocumentAccessService, DocumentPage

__all__ = [
    "AccessGrantService",
    "CreateAccessGrantInput",
    "DocumentAccessService",
    "DocumentPage",
    "ManagerAuthorityResolver",
]
