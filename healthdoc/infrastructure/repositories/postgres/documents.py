"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/documents.py
============================================================
Class: PostgresDocumentRepository

Responsibilities:
  - Persistir documentos en PostgreSQL (tabla documents).
  - Escrituras condicionales (optimistic):
      - transition_status: WHERE status = ANY(from_statuses)
      - assign_origin_manager: WHERE origin_manager_id IS NULL
      - soft_delete: WHERE deleted_at IS NULL
  - Lecturas para listado por origin manager y barrido de retención.

Collaborators:
  - psycopg_pool.ConnectionPool
  - crosscutting.exceptions.DatabaseError

Constraints / Notes:
  - Repo puro: NO valida transiciones (eso es DocumentStateMachine).
  - Columnas dinámicas de transition_status salen de una whitelist.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from ....domain.entities import Document, DocumentStatus
from .base import PostgresRepositoryBase

_COLUMNS = """
    id, origin_manager_id, origin_user_context_id, status,
    raw_file_uri, file_name, file_size, mime_type,
    page_count, confidence, error_message, retry_count,
    uploaded_at, processing_started_at, processed_at,
    created_at, updated_at, deleted_at, scheduled_deletion_at
"""

# Campos que transition_status puede tocar además de status.
_MUTABLE_COLUMNS = frozenset(
    {
        "error_message",
        "retry_count",
        "page_count",
        "confidence",
        "processing_started_at",
        "processed_at",
    }
)


class PostgresDocumentRepository(PostgresRepositoryBase):
    """Repositorio PostgreSQL para documents."""

    _SQL_INSERT = """
        INSERT INTO documents (
            id, origin_manager_id, origin_user_context_id, status,
            raw_file_uri, file_name, file_size, mime_type,
            page_count, confidence, error_message, retry_count,
            uploaded_at, processing_started_at, processed_at,
            created_at, updated_at
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                COALESCE(%s, NOW()), COALESCE(%s, NOW()))
    """

    _SQL_FIND_BY_ID = f"""
        SELECT {_COLUMNS}
        FROM documents
        WHERE id = %s AND (%s OR deleted_at IS NULL)
    """

    _SQL_FIND_BY_ORIGIN_MANAGER = f"""
        SELECT {_COLUMNS}, COUNT(*) OVER() AS total
        FROM documents
        WHERE origin_manager_id = %s
          AND deleted_at IS NULL
          AND (%s::text[] IS NULL OR status = ANY(%s::text[]))
        ORDER BY created_at ASC, id ASC
        OFFSET %s
        LIMIT %s
    """

    _SQL_COUNT_BY_ORIGIN_MANAGER = """
        SELECT COUNT(*)
        FROM documents
        WHERE origin_manager_id = %s
          AND deleted_at IS NULL
          AND (%s::text[] IS NULL OR status = ANY(%s::text[]))
    """

    _SQL_ASSIGN_ORIGIN_MANAGER = """
        UPDATE documents
        SET origin_manager_id = %s, updated_at = NOW()
        WHERE id = %s AND origin_manager_id IS NULL AND deleted_at IS NULL
    """

    _SQL_SOFT_DELETE = """
        UPDATE documents
        SET status = %s, deleted_at = %s, scheduled_deletion_at = %s, updated_at = %s
        WHERE id = %s AND deleted_at IS NULL
    """

    _SQL_FIND_EXPIRED = f"""
        SELECT {_COLUMNS}
        FROM documents
        WHERE deleted_at IS NOT NULL
          AND scheduled_deletion_at IS NOT NULL
          AND scheduled_deletion_at <= %s
        ORDER BY scheduled_deletion_at ASC
    """

    _SQL_HARD_DELETE = "DELETE FROM documents WHERE id = %s"

    # =========================================================
    # Mapping
    # =========================================================
    @staticmethod
    def _row_to_document(row: tuple) -> Document:
        return Document(
            id=row[0],
            origin_manager_id=row[1],
            origin_user_context_id=row[2],
            status=DocumentStatus(row[3]),
            raw_file_uri=row[4],
            file_name=row[5],
            file_size=row[6],
            mime_type=row[7],
            page_count=row[8],
            confidence=row[9],
            error_message=row[10],
            retry_count=row[11] or 0,
            uploaded_at=row[12],
            processing_started_at=row[13],
            processed_at=row[14],
            created_at=row[15],
            updated_at=row[16],
            deleted_at=row[17],
            scheduled_deletion_at=row[18],
        )

    @staticmethod
    def _status_values(
        statuses: Optional[Sequence[DocumentStatus]],
    ) -> Optional[list[str]]:
        if not statuses:
            return None
        return [s.value for s in statuses]

    # =========================================================
    # Public API
    # =========================================================
    def save(self, document: Document) -> None:
        self._execute_rowcount(
            query=self._SQL_INSERT,
            params=[
                document.id,
                document.origin_manager_id,
                document.origin_user_context_id,
                document.status.value,
                document.raw_file_uri,
                document.file_name,
                document.file_size,
                document.mime_type,
                document.page_count,
                document.confidence,
                document.error_message,
                document.retry_count,
                document.uploaded_at,
                document.processing_started_at,
                document.processed_at,
                document.created_at,
                document.updated_at,
            ],
            context_msg="PostgresDocumentRepository: Failed to save document",
            extra={"document_id": str(document.id)},
        )

    def find_by_id(
        self, document_id: UUID, *, include_deleted: bool = False
    ) -> Optional[Document]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_ID,
            params=[document_id, include_deleted],
            context_msg="PostgresDocumentRepository: Failed to get document",
            extra={"document_id": str(document_id)},
        )
        return self._row_to_document(row) if row else None

    def find_by_origin_manager_id(
        self,
        manager_id: int,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        statuses: Optional[Sequence[DocumentStatus]] = None,
    ) -> tuple[List[Document], int]:
        status_values = self._status_values(statuses)
        extra = {"manager_id": manager_id}
        rows = self._fetchall(
            query=self._SQL_FIND_BY_ORIGIN_MANAGER,
            params=[manager_id, status_values, status_values, skip, limit],
            context_msg="PostgresDocumentRepository: Failed to list documents by origin manager",
            extra=extra,
        )
        if rows:
            return [self._row_to_document(r[:-1]) for r in rows], int(rows[0][-1])

        # Página vacía: el total puede seguir siendo > 0 (skip fuera de rango).
        row = self._fetchone(
            query=self._SQL_COUNT_BY_ORIGIN_MANAGER,
            params=[manager_id, status_values, status_values],
            context_msg="PostgresDocumentRepository: Failed to count documents by origin manager",
            extra=extra,
        )
        return [], int(row[0]) if row else 0

    def transition_status(
        self,
        document_id: UUID,
        *,
        from_statuses: Sequence[DocumentStatus],
        to_status: DocumentStatus,
        changes: Optional[dict] = None,
    ) -> bool:
        """
        Transición de estado condicional (optimistic).

        Retorna True si se actualizó; False si el status actual no está en
        from_statuses, o si el documento no existe / está eliminado.
        """
        if not from_statuses:
            return False

        changes = dict(changes or {})
        unknown = set(changes) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported document fields: {sorted(unknown)}")

        # Construcción controlada: los nombres de columna salen de la whitelist.
        assignments = ["status = %s", "updated_at = NOW()"]
        params: list[object] = [to_status.value]
        for column in sorted(changes):
            assignments.append(f"{column} = %s")
            params.append(changes[column])

        sql = f"""
            UPDATE documents
            SET {", ".join(assignments)}
            WHERE id = %s AND deleted_at IS NULL AND status = ANY(%s)
        """
        params.extend([document_id, [s.value for s in from_statuses]])

        affected = self._execute_rowcount(
            query=sql,
            params=params,
            context_msg="PostgresDocumentRepository: Failed to transition document status",
            extra={"document_id": str(document_id), "to_status": to_status.value},
        )
        return affected == 1

    def assign_origin_manager(self, document_id: UUID, manager_id: int) -> bool:
        affected = self._execute_rowcount(
            query=self._SQL_ASSIGN_ORIGIN_MANAGER,
            params=[manager_id, document_id],
            context_msg="PostgresDocumentRepository: Failed to assign origin manager",
            extra={"document_id": str(document_id), "manager_id": manager_id},
        )
        return affected == 1

    def soft_delete(
        self,
        document_id: UUID,
        *,
        deleted_at: datetime,
        scheduled_deletion_at: datetime,
    ) -> bool:
        affected = self._execute_rowcount(
            query=self._SQL_SOFT_DELETE,
            params=[
                DocumentStatus.ARCHIVED.value,
                deleted_at,
                scheduled_deletion_at,
                deleted_at,
                document_id,
            ],
            context_msg="PostgresDocumentRepository: Failed to soft delete document",
            extra={"document_id": str(document_id)},
        )
        return affected == 1

    def find_expired(self, now: datetime) -> List[Document]:
        rows = self._fetchall(
            query=self._SQL_FIND_EXPIRED,
            params=[now],
            context_msg="PostgresDocumentRepository: Failed to list expired documents",
            extra={},
        )
        return [self._row_to_document(r) for r in rows]

    def hard_delete(self, document_id: UUID) -> bool:
        affected = self._execute_rowcount(
            query=self._SQL_HARD_DELETE,
            params=[document_id],
            context_msg="PostgresDocumentRepository: Failed to hard delete document",
            extra={"document_id": str(document_id)},
        )
        return affected == 1
