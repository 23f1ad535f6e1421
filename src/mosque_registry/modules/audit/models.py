"""
Audit Log Models

Append-only record of every lifecycle transition and mosque management
action. Rows are inserted and never updated.
"""

from uuid import UUID as PyUUID

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from mosque_registry.modules.shared import BaseModel


class AuditLog(BaseModel):
    """One audit entry: who did what to which subject, with before/after snapshots."""

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(64), nullable=False)

    # Actor
    actor_id: Mapped[PyUUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    actor_type: Mapped[str] = mapped_column(String(32), nullable=False)
    actor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Subject ("admin" or "mosque"); ids are plain values, not foreign keys,
    # so entries survive deletion of the subject
    subject_type: Mapped[str] = mapped_column(String(32), nullable=False)
    subject_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    mosque_id: Mapped[PyUUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    before_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    after_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
        Index("ix_audit_logs_subject_created", "subject_id", "created_at"),
        Index("ix_audit_logs_mosque_created", "mosque_id", "created_at"),
        Index("ix_audit_logs_action_created", "action", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, subject={self.subject_id})>"
