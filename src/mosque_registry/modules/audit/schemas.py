"""Audit log schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    actor_id: UUID | None
    actor_type: str
    actor_email: str | None
    actor_name: str | None
    subject_type: str
    subject_id: UUID
    mosque_id: UUID | None
    before_data: dict[str, Any] | None
    after_data: dict[str, Any] | None
    reason: str | None
    details: dict[str, Any] | None
    ip_address: str | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int
    skip: int
    limit: int
