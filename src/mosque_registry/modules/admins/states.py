"""
Admin Status Detail

Each admin status is a separate variant carrying only the fields that mean
something in that status. The variant is stored as JSON in
``admins.status_detail``; the flat columns (status, mosque_id,
verification_code_used, code_regenerated_mosque_id) are projections written
by ``Admin.set_state``.

Bound variants (pending, approved) hold the mosque binding and the code that
was presented. Unbound variants hold a reason, a timestamp, the acting user
and a snapshot of the mosque's name and location, because the mosque may be
deleted or reassigned afterwards.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class MosqueSnapshot(_Frozen):
    """Mosque identity as it was at the time of a transition."""

    mosque_id: UUID | None = None
    name: str
    location: str


class PendingState(_Frozen):
    status: Literal["pending"] = "pending"
    mosque_id: UUID
    verification_code_used: str
    applied_at: datetime


class ApprovedState(_Frozen):
    status: Literal["approved"] = "approved"
    mosque_id: UUID
    verification_code_used: str
    approved_at: datetime
    approved_by: UUID | None = None
    notes: str | None = None


class RejectedState(_Frozen):
    status: Literal["rejected"] = "rejected"
    reason: str
    rejected_at: datetime
    rejected_by: UUID | None = None
    mosque: MosqueSnapshot


class MosqueDeletedState(_Frozen):
    status: Literal["mosque_deleted"] = "mosque_deleted"
    reason: str
    deleted_at: datetime
    deleted_by: UUID | None = None
    mosque: MosqueSnapshot


class AdminRemovedState(_Frozen):
    status: Literal["admin_removed"] = "admin_removed"
    reason: str
    removed_at: datetime
    removed_by: UUID | None = None
    mosque: MosqueSnapshot


class CodeRegeneratedState(_Frozen):
    """
    Approval suspended by a code rotation.

    The admin keeps its claim on ``mosque_id`` and returns to approved by
    presenting the new code; the suspended approval is kept so it can be
    restored unchanged.
    """

    status: Literal["code_regenerated"] = "code_regenerated"
    mosque_id: UUID
    reason: str
    regenerated_at: datetime
    regenerated_by: UUID | None = None
    mosque: MosqueSnapshot
    previous_code_fingerprint: str | None = None
    approved_at: datetime
    approved_by: UUID | None = None
    notes: str | None = None


AdminState = Annotated[
    PendingState
    | ApprovedState
    | RejectedState
    | MosqueDeletedState
    | AdminRemovedState
    | CodeRegeneratedState,
    Field(discriminator="status"),
]

admin_state_adapter: TypeAdapter[AdminState] = TypeAdapter(AdminState)

BOUND_STATES = (PendingState, ApprovedState)


class RejectionRecord(_Frozen):
    """One entry of an admin's append-only rejection history."""

    mosque_id: UUID
    mosque_name: str
    rejected_at: datetime
    reason: str
