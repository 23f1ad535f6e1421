"""
Admin Models

An admin is an applicant/manager account bound to at most one mosque at a
time. The lifecycle status and its per-status detail are written together
through ``Admin.set_state``; nothing else should assign ``status`` or
``mosque_id`` directly.

The partial unique index ``uq_admins_active_mosque`` allows at most one
pending or approved admin per mosque. Two concurrent applications for the
same mosque cannot both commit.
"""

import enum
from uuid import UUID as PyUUID

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from mosque_registry.modules.admins.states import (
    BOUND_STATES,
    AdminState,
    CodeRegeneratedState,
    RejectionRecord,
    admin_state_adapter,
)
from mosque_registry.modules.shared import BaseModel

ACTIVE_SLOT_INDEX = "uq_admins_active_mosque"


class AdminStatus(str, enum.Enum):
    """Admin lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MOSQUE_DELETED = "mosque_deleted"
    ADMIN_REMOVED = "admin_removed"
    CODE_REGENERATED = "code_regenerated"


# Statuses that occupy a mosque's single admin slot
ACTIVE_STATUSES = (AdminStatus.PENDING, AdminStatus.APPROVED)

# Enum values are stored by name
_ACTIVE_SLOT_WHERE = text("status IN ('PENDING', 'APPROVED')")


class Admin(BaseModel):
    """Mosque admin account and its lifecycle state."""

    __tablename__ = "admins"

    # Identity
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    application_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle projections (written by set_state)
    status: Mapped[AdminStatus] = mapped_column(
        Enum(AdminStatus, name="admin_status"),
        nullable=False,
        default=AdminStatus.PENDING,
    )
    mosque_id: Mapped[PyUUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("mosques.id", ondelete="SET NULL"),
        nullable=True,
    )
    verification_code_used: Mapped[str | None] = mapped_column(String(32), nullable=True)
    code_regenerated_mosque_id: Mapped[PyUUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("mosques.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status_detail: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Reapplication gate
    rejection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    can_reapply: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Append-only: [{mosque_id, mosque_name, rejected_at, reason}, ...]
    rejection_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "mosque_id",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_WHERE,
            sqlite_where=_ACTIVE_SLOT_WHERE,
        ),
        Index("ix_admins_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email={self.email}, status={self.status.value})>"

    @property
    def state(self) -> AdminState:
        return admin_state_adapter.validate_python(self.status_detail)

    def set_state(self, state: AdminState) -> None:
        """Replace the lifecycle state and re-derive every projected column."""
        self.status_detail = state.model_dump(mode="json")
        self.status = AdminStatus(state.status)

        if isinstance(state, BOUND_STATES):
            self.mosque_id = state.mosque_id
            self.verification_code_used = state.verification_code_used
        else:
            self.mosque_id = None
            self.verification_code_used = None

        if isinstance(state, CodeRegeneratedState):
            self.code_regenerated_mosque_id = state.mosque_id
        else:
            self.code_regenerated_mosque_id = None

    @property
    def bound_mosque_id(self) -> PyUUID | None:
        """Mosque this admin holds or claims, if any."""
        return self.mosque_id or self.code_regenerated_mosque_id

    @property
    def rejections(self) -> list[RejectionRecord]:
        return [RejectionRecord.model_validate(entry) for entry in self.rejection_history or []]

    def append_rejection(self, record: RejectionRecord) -> None:
        # New list so SQLAlchemy sees the change
        self.rejection_history = [*(self.rejection_history or []), record.model_dump(mode="json")]

    def was_rejected_by(self, mosque_id: PyUUID) -> bool:
        return any(record.mosque_id == mosque_id for record in self.rejections)
