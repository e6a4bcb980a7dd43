from .access_grants import InMemoryAccessGrantRepository
from .audit_events import InMemoryAuditEventRepository
from .documents import InMemoryDocumentRepository
from .managers import InMemoryManagerRepository

__all__ = [
    "InMemoryAccessGrantRepository",
    "InMemoryAuditEventRepository",
    "InMemoryDocumentRepository",
    "InMemoryManagerRepository",
]
