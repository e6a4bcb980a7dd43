from .access_grants import PostgresAccessGrantRepository
from .audit_events import PostgresAuditEventRepository
from .documents import PostgresDocumentRepository
from .managers import PostgresManagerRepository

__all__ = [
    "PostgresAccessGrantRepository",
    "PostgresAuditEventRepository",
    "PostgresDocumentRepository",
    "PostgresManagerRepository",
]
