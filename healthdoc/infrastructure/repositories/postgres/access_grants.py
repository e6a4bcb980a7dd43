"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/access_grants.py
============================================================
Class: PostgresAccessGrantRepository

Responsibilities:
  - Persistir grants en PostgreSQL (tabla access_grants).
  - Delegar la unicidad de grants activos al índice único parcial
    uq_access_grants_active (document_id, subject_type, subject_id)
    WHERE revoked_at IS NULL, y traducir la violación a
    DuplicateActiveGrantError.
  - Revocación condicional (WHERE revoked_at IS NULL).

Collaborators:
  - psycopg_pool.ConnectionPool / psycopg.errors.UniqueViolation
  - crosscutting.exceptions.DatabaseError / DuplicateActiveGrantError

Constraints / Notes:
  - Repo puro: NO decide autorización.
  - Grants nunca se borran (retención de auditoría).
============================================================
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from psycopg import errors as pg_errors

from ....crosscutting.exceptions import DatabaseError, DuplicateActiveGrantError
from ....crosscutting.logger import logger
from ....domain.entities import (
    AccessGrant,
    ActorType,
    GrantType,
    NewAccessGrant,
    SubjectType,
)
from .base import PostgresRepositoryBase

_COLUMNS = """
    id, document_id, subject_type, subject_id, grant_type,
    granted_by_type, granted_by_id, created_at,
    revoked_at, revoked_by_type, revoked_by_id
"""


class PostgresAccessGrantRepository(PostgresRepositoryBase):
    """Repositorio PostgreSQL para access_grants."""

    _SQL_FIND_ACTIVE = f"""
        SELECT {_COLUMNS}
        FROM access_grants
        WHERE document_id = %s AND subject_type = %s AND subject_id = %s
          AND revoked_at IS NULL
    """

    _SQL_FIND_BY_DOCUMENT = f"""
        SELECT {_COLUMNS}
        FROM access_grants
        WHERE document_id = %s
          AND (%s = FALSE OR revoked_at IS NULL)
        ORDER BY created_at ASC, id ASC
    """

    _SQL_FIND_BY_SUBJECT = f"""
        SELECT {_COLUMNS}
        FROM access_grants
        WHERE subject_type = %s AND subject_id = %s
          AND (%s = FALSE OR revoked_at IS NULL)
        ORDER BY created_at ASC, id ASC
    """

    _SQL_FIND_BY_ID = f"SELECT {_COLUMNS} FROM access_grants WHERE id = %s"

    _SQL_INSERT = f"""
        INSERT INTO access_grants (
            document_id, subject_type, subject_id, grant_type,
            granted_by_type, granted_by_id
        )
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
    """

    _SQL_REVOKE = """
        UPDATE access_grants
        SET revoked_at = NOW(), revoked_by_type = %s, revoked_by_id = %s
        WHERE id = %s AND revoked_at IS NULL
    """

    # =========================================================
    # Mapping
    # =========================================================
    @staticmethod
    def _row_to_grant(row: tuple) -> AccessGrant:
        return AccessGrant(
            id=row[0],
            document_id=row[1],
            subject_type=SubjectType(row[2]),
            subject_id=row[3],
            grant_type=GrantType(row[4]),
            granted_by_type=ActorType(row[5]),
            granted_by_id=row[6],
            created_at=row[7],
            revoked_at=row[8],
            revoked_by_type=ActorType(row[9]) if row[9] else None,
            revoked_by_id=row[10],
        )

    # =========================================================
    # Public API
    # =========================================================
    def find_active(
        self, document_id: UUID, subject_type: SubjectType, subject_id: int
    ) -> Optional[AccessGrant]:
        row = self._fetchone(
            query=self._SQL_FIND_ACTIVE,
            params=[document_id, subject_type.value, subject_id],
            context_msg="PostgresAccessGrantRepository: Failed to find active grant",
            extra={"document_id": str(document_id), "subject_type": subject_type.value},
        )
        return self._row_to_grant(row) if row else None

    def find_by_document_id(
        self, document_id: UUID, *, active_only: bool = True
    ) -> List[AccessGrant]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_DOCUMENT,
            params=[document_id, active_only],
            context_msg="PostgresAccessGrantRepository: Failed to list grants by document",
            extra={"document_id": str(document_id)},
        )
        return [self._row_to_grant(r) for r in rows]

    def find_by_subject(
        self, subject_type: SubjectType, subject_id: int, *, active_only: bool = True
    ) -> List[AccessGrant]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_SUBJECT,
            params=[subject_type.value, subject_id, active_only],
            context_msg="PostgresAccessGrantRepository: Failed to list grants by subject",
            extra={"subject_type": subject_type.value, "subject_id": subject_id},
        )
        return [self._row_to_grant(r) for r in rows]

    def find_by_id(self, grant_id: int) -> Optional[AccessGrant]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_ID,
            params=[grant_id],
            context_msg="PostgresAccessGrantRepository: Failed to get grant",
            extra={"grant_id": grant_id},
        )
        return self._row_to_grant(row) if row else None

    def create(self, grant: NewAccessGrant) -> AccessGrant:
        extra = {
            "document_id": str(grant.document_id),
            "subject_type": grant.subject_type.value,
        }
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    self._SQL_INSERT,
                    (
                        grant.document_id,
                        grant.subject_type.value,
                        grant.subject_id,
                        grant.grant_type.value,
                        grant.granted_by_type.value,
                        grant.granted_by_id,
                    ),
                ).fetchone()
        except pg_errors.UniqueViolation as exc:
            logger.info("Duplicate active grant rejected by store", extra=extra)
            raise DuplicateActiveGrantError(
                "Active grant already exists for this document and subject",
                original_error=exc,
            ) from exc
        except Exception as exc:
            logger.exception(
                "PostgresAccessGrantRepository: Failed to create grant",
                extra={**extra, "error": str(exc)},
            )
            raise DatabaseError(f"Failed to create grant: {exc}") from exc

        return self._row_to_grant(row)

    def revoke(
        self, grant_id: int, revoked_by_type: ActorType, revoked_by_id: int
    ) -> bool:
        affected = self._execute_rowcount(
            query=self._SQL_REVOKE,
            params=[revoked_by_type.value, revoked_by_id, grant_id],
            context_msg="PostgresAccessGrantRepository: Failed to revoke grant",
            extra={"grant_id": grant_id},
        )
        return affected == 1
