"""initial mosque registry schema

Revision ID: a1c4e7f2b9d3
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration creates:
1. super_admins - platform operator accounts
2. mosques - mosque records with their current verification code
3. admins - admin accounts and lifecycle state, with the partial unique
   index that allows one pending or approved admin per mosque
4. audit_logs - append-only audit trail
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7f2b9d3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Stored by enum NAME, matching SQLAlchemy's Enum(AdminStatus)
ADMIN_STATUS_VALUES = (
    "PENDING",
    "APPROVED",
    "REJECTED",
    "MOSQUE_DELETED",
    "ADMIN_REMOVED",
    "CODE_REGENERATED",
)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
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
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "super_admins",
        *_base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_super_admins_email", "super_admins", ["email"], unique=True)

    op.create_table(
        "mosques",
        *_base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contact_phone", sa.String(length=20), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("admin_instructions", sa.Text(), nullable=True),
        sa.Column("prayer_times", sa.JSON(), nullable=True),
        sa.Column("verification_code", sa.String(length=32), nullable=False),
        sa.Column("verification_code_expires", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("verification_code"),
    )
    op.create_index("ix_mosques_name", "mosques", ["name"])
    op.create_index(
        "ix_mosques_verification_code_expires", "mosques", ["verification_code_expires"]
    )

    admin_status = postgresql.ENUM(*ADMIN_STATUS_VALUES, name="admin_status", create_type=False)
    admin_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "admins",
        *_base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("application_notes", sa.Text(), nullable=True),
        sa.Column("status", admin_status, nullable=False),
        sa.Column("mosque_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("verification_code_used", sa.String(length=32), nullable=True),
        sa.Column("code_regenerated_mosque_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status_detail", sa.JSON(), nullable=False),
        sa.Column("rejection_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("can_reapply", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("rejection_history", sa.JSON(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["mosque_id"], ["mosques.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["code_regenerated_mosque_id"], ["mosques.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)
    op.create_index("ix_admins_phone", "admins", ["phone"], unique=True)
    op.create_index("ix_admins_status", "admins", ["status"])
    op.create_index(
        "ix_admins_code_regenerated_mosque_id", "admins", ["code_regenerated_mosque_id"]
    )
    # At most one pending or approved admin per mosque
    op.create_index(
        "uq_admins_active_mosque",
        "admins",
        ["mosque_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING', 'APPROVED')"),
    )

    op.create_table(
        "audit_logs",
        *_base_columns(),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("actor_type", sa.String(length=32), nullable=False),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("actor_name", sa.String(length=255), nullable=True),
        sa.Column("subject_type", sa.String(length=32), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mosque_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("before_data", sa.JSON(), nullable=True),
        sa.Column("after_data", sa.JSON(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_actor_created", "audit_logs", ["actor_id", "created_at"])
    op.create_index("ix_audit_logs_subject_created", "audit_logs", ["subject_id", "created_at"])
    op.create_index("ix_audit_logs_mosque_created", "audit_logs", ["mosque_id", "created_at"])
    op.create_index("ix_audit_logs_action_created", "audit_logs", ["action", "created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_index("uq_admins_active_mosque", table_name="admins")
    op.drop_table("admins")
    postgresql.ENUM(name="admin_status").drop(op.get_bind(), checkfirst=True)
    op.drop_table("mosques")
    op.drop_table("super_admins")
