"""
Admin Schemas

Request and response models for the applicant and super admin endpoints.
Reason length minimums are enforced by the lifecycle rules so that every
caller (API, jobs, scripts) gets the same INVALID_REASON_LENGTH error.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from mosque_registry.modules.admins.models import Admin, AdminStatus

# ============================================
# Requests
# ============================================


class AdminRegistrationRequest(BaseModel):
    """New admin application for a mosque."""

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=20)
    password: str = Field(..., min_length=8, max_length=128)
    mosque_id: UUID
    verification_code: str = Field(..., min_length=1, max_length=64)
    application_notes: str | None = Field(None, max_length=2000)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        cleaned = v.strip().replace(" ", "")
        if not cleaned.lstrip("+").isdigit():
            raise ValueError("Phone number must contain digits only")
        return cleaned


class ReapplyRequest(BaseModel):
    mosque_id: UUID
    verification_code: str = Field(..., min_length=1, max_length=64)
    reason: str = Field(..., max_length=2000)


class RevalidateCodeRequest(BaseModel):
    verification_code: str = Field(..., min_length=1, max_length=64)


class ApproveRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    reason: str = Field(..., max_length=2000)
    allow_reapply: bool = False


class RemoveRequest(BaseModel):
    reason: str = Field(..., max_length=2000)


class AllowReapplicationRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


# ============================================
# Responses
# ============================================


class RejectionRecordResponse(BaseModel):
    mosque_id: UUID
    mosque_name: str
    rejected_at: datetime
    reason: str


class AdminResponse(BaseModel):
    """Admin account with its current lifecycle state."""

    id: UUID
    name: str
    email: str
    phone: str
    status: AdminStatus
    mosque_id: UUID | None
    code_regenerated_mosque_id: UUID | None
    state: dict[str, Any]
    rejection_count: int
    can_reapply: bool
    rejection_history: list[RejectionRecordResponse]
    application_notes: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_admin(cls, admin: Admin) -> "AdminResponse":
        # The code an admin used is never echoed back
        state = {
            key: value
            for key, value in (admin.status_detail or {}).items()
            if key != "verification_code_used"
        }
        return cls(
            id=admin.id,
            name=admin.name,
            email=admin.email,
            phone=admin.phone,
            status=admin.status,
            mosque_id=admin.mosque_id,
            code_regenerated_mosque_id=admin.code_regenerated_mosque_id,
            state=state,
            rejection_count=admin.rejection_count,
            can_reapply=admin.can_reapply,
            rejection_history=[
                RejectionRecordResponse(**record.model_dump()) for record in admin.rejections
            ],
            application_notes=admin.application_notes,
            created_at=admin.created_at,
            updated_at=admin.updated_at,
        )


class AdminListResponse(BaseModel):
    items: list[AdminResponse]
    total: int
    skip: int
    limit: int
    status_counts: dict[str, int]


class TransitionResponse(BaseModel):
    """Result of a lifecycle transition."""

    success: bool = True
    message: str
    admin: AdminResponse
