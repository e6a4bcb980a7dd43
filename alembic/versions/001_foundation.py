"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema de documentos de salud desde cero.
  - Enforzar en la base las reglas que no pueden depender del código:
      * a lo sumo un grant activo por (documento, tipo de sujeto, sujeto)
      * todo documento tiene manager de origen o usuario de contexto

Collaborators:
  - PostgreSQL 16+
  - infrastructure/repositories/postgres/* (usan este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade NO soportado.
  - Convención de nombres:
      pk_<tabla> / uq_<tabla>_<col> / ix_<tabla>_<col> / ck_<tabla>_<regla>
      fk_<tabla>_<col>__<ref_tabla>
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================
    # 1) MANAGERS (directorio)
    # =========================================================
    op.create_table(
        "managers",
        sa.Column("id", sa.BigInteger, sa.Identity(), nullable=False),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "verification_status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_managers"),
        sa.UniqueConstraint("user_id", name="uq_managers_user_id"),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'verified', 'suspended')",
            name="ck_managers_verification_status",
        ),
    )

    # =========================================================
    # 2) DOCUMENTS
    # =========================================================
    op.create_table(
        "documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("origin_manager_id", sa.BigInteger, nullable=True),
        sa.Column("origin_user_context_id", sa.BigInteger, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("raw_file_uri", sa.Text, nullable=True),
        sa.Column("file_name", sa.String(512), nullable=True),
        sa.Column("file_size", sa.BigInteger, nullable=True),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("page_count", sa.Integer, nullable=True),
        sa.Column("confidence", sa.Float, nullable=True),
        sa.Column("error_message", sa.String(500), nullable=True),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_deletion_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_documents"),
        sa.ForeignKeyConstraint(
            ["origin_manager_id"],
            ["managers.id"],
            name="fk_documents_origin_manager_id__managers",
        ),
        sa.CheckConstraint(
            "origin_manager_id IS NOT NULL OR origin_user_context_id IS NOT NULL",
            name="ck_documents_has_authority_root",
        ),
        sa.CheckConstraint(
            "status IN ('UPLOADED', 'STORED', 'QUEUED', 'PROCESSING', "
            "'PROCESSED', 'FAILED', 'ARCHIVED')",
            name="ck_documents_status",
        ),
        sa.CheckConstraint("retry_count >= 0", name="ck_documents_retry_count"),
    )

    op.create_index(
        "ix_documents_origin_manager_alive",
        "documents",
        ["origin_manager_id", "created_at"],
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index(
        "ix_documents_scheduled_deletion_at",
        "documents",
        ["scheduled_deletion_at"],
        postgresql_where=sa.text("deleted_at IS NOT NULL"),
    )

    # =========================================================
    # 3) ACCESS GRANTS
    # =========================================================
    op.create_table(
        "access_grants",
        sa.Column("id", sa.BigInteger, sa.Identity(), nullable=False),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_type", sa.String(20), nullable=False),
        sa.Column("subject_id", sa.BigInteger, nullable=False),
        sa.Column("grant_type", sa.String(20), nullable=False),
        sa.Column("granted_by_type", sa.String(20), nullable=False),
        sa.Column("granted_by_id", sa.BigInteger, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by_type", sa.String(20), nullable=True),
        sa.Column("revoked_by_id", sa.BigInteger, nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_access_grants"),
        # Sin FK a documents: el historial de grants sobrevive a la purga física.
        sa.CheckConstraint(
            "subject_type IN ('user', 'manager')", name="ck_access_grants_subject_type"
        ),
        sa.CheckConstraint(
            "grant_type IN ('owner', 'delegated', 'derived')",
            name="ck_access_grants_grant_type",
        ),
        sa.CheckConstraint(
            "(revoked_at IS NULL AND revoked_by_type IS NULL AND revoked_by_id IS NULL) "
            "OR (revoked_at IS NOT NULL AND revoked_by_type IS NOT NULL "
            "AND revoked_by_id IS NOT NULL)",
            name="ck_access_grants_revocation_complete",
        ),
    )

    # Unicidad de grant activo: la base es la última línea de defensa.
    op.create_index(
        "uq_access_grants_active",
        "access_grants",
        ["document_id", "subject_type", "subject_id"],
        unique=True,
        postgresql_where=sa.text("revoked_at IS NULL"),
    )
    op.create_index(
        "ix_access_grants_document_id", "access_grants", ["document_id"]
    )
    op.create_index(
        "ix_access_grants_subject_active",
        "access_grants",
        ["subject_type", "subject_id"],
        postgresql_where=sa.text("revoked_at IS NULL"),
    )

    # =========================================================
    # 4) AUDIT
    # =========================================================
    op.create_table(
        "audit_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_type", sa.String(20), nullable=True),
        sa.Column("actor_id", sa.BigInteger, nullable=True),
        sa.Column("event_kind", sa.String(64), nullable=False),
        sa.Column("success", sa.Boolean, nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_audit_events"),
    )

    op.create_index("ix_audit_events_event_kind", "audit_events", ["event_kind"])
    op.create_index("ix_audit_events_created_at", "audit_events", ["created_at"])
    op.execute(
        "CREATE INDEX ix_audit_events_document_id "
        "ON audit_events ((metadata->>'document_id'))"
    )


def downgrade() -> None:
    """Baseline: downgrade no soportado."""
    raise NotImplementedError(
        "Baseline: downgrade no soportado. Para resetear, recrear la base de datos."
    )
