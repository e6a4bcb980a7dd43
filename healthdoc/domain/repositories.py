"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for grants, documents, managers and audit events.
- Keep the application/domain independent from infrastructure (PostgreSQL, in-memory).
- Enable dependency inversion and straightforward unit testing (mock/stub repositories).

Collaborators
- domain.entities: AccessGrant, NewAccessGrant, Document, Manager
- domain.audit: AuditEvent
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Every read returns current state (no caching across calls).
- Conditional writes return bool: False means the precondition no longer held.

Notes
- The "one active grant per (document, subject_type, subject_id)" rule is
  enforced by `AccessGrantRepository.create` itself (unique index / lock);
  the service-level pre-check is only the user-facing fast path.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence
from uuid import UUID

from .audit import AuditEvent
from .entities import (
    AccessGrant,
    ActorType,
    Document,
    DocumentStatus,
    Manager,
    NewAccessGrant,
    SubjectType,
)


class AccessGrantRepository(Protocol):
    """R: Grant Store. Grants are never hard-deleted."""

    def find_active(
        self, document_id: UUID, subject_type: SubjectType, subject_id: int
    ) -> Optional[AccessGrant]:
        """R: Active (non-revoked) grant for the tuple, if any."""
        ...

    def find_by_document_id(
        self, document_id: UUID, *, active_only: bool = True
    ) -> List[AccessGrant]:
        ...

    def find_by_subject(
        self, subject_type: SubjectType, subject_id: int, *, active_only: bool = True
    ) -> List[AccessGrant]:
        ...

    def find_by_id(self, grant_id: int) -> Optional[AccessGrant]:
        ...

    def create(self, grant: NewAccessGrant) -> AccessGrant:
        """
        R: Persist a new grant.

        Raises:
            DuplicateActiveGrantError: an active grant already exists for
                (document_id, subject_type, subject_id).
        """
        ...

    def revoke(
        self, grant_id: int, revoked_by_type: ActorType, revoked_by_id: int
    ) -> bool:
        """R: Conditional revoke. False if missing or already revoked."""
        ...


class DocumentRepository(Protocol):
    """R: Document Store."""

    def save(self, document: Document) -> None:
        ...

    def find_by_id(
        self, document_id: UUID, *, include_deleted: bool = False
    ) -> Optional[Document]:
        ...

    def find_by_origin_manager_id(
        self,
        manager_id: int,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        statuses: Optional[Sequence[DocumentStatus]] = None,
    ) -> tuple[List[Document], int]:
        """R: (page, total) of non-deleted documents rooted at a manager record."""
        ...

    def transition_status(
        self,
        document_id: UUID,
        *,
        from_statuses: Sequence[DocumentStatus],
        to_status: DocumentStatus,
        changes: Optional[dict] = None,
    ) -> bool:
        """
        R: Conditional status write (plus optional field changes).

        Returns False when the current status is not in `from_statuses`.
        """
        ...

    def assign_origin_manager(self, document_id: UUID, manager_id: int) -> bool:
        """R: One-time write. False when an origin manager is already set."""
        ...

    def soft_delete(
        self,
        document_id: UUID,
        *,
        deleted_at: datetime,
        scheduled_deletion_at: datetime,
    ) -> bool:
        """R: Sets deleted_at/scheduled_deletion_at and ARCHIVED. False if already deleted."""
        ...

    def find_expired(self, now: datetime) -> List[Document]:
        """R: Soft-deleted documents whose scheduled_deletion_at <= now."""
        ...

    def hard_delete(self, document_id: UUID) -> bool:
        ...


class ManagerRepository(Protocol):
    """R: Manager Directory (user id -> manager record)."""

    def find_by_user_id(self, user_id: int) -> Optional[Manager]:
        ...

    def find_by_id(self, manager_id: int) -> Optional[Manager]:
        ...


class AuditEventRepository(Protocol):
    """R: Append-only audit sink."""

    def record_event(self, event: AuditEvent) -> None:
        ...
