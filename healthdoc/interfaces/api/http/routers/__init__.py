"""
Routers HTTP por contexto. Este archivo NO define endpoints: solo re-exporta.
"""

from .access_grants import router as access_grants_router
from .documents import router as documents_router

__all__ = ["access_grants_router", "documents_router"]
