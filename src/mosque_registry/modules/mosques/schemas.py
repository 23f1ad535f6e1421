"""
Mosque Schemas

Request and response models for mosque management. The verification code
is only ever returned to the super admin (create, verification view,
regenerate) and never in public responses.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# 24-hour "HH:MM"
PRAYER_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class MosqueCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    location: str = Field(..., min_length=2, max_length=500)
    description: str | None = Field(None, max_length=2000)
    contact_phone: str = Field(..., min_length=7, max_length=20)
    contact_email: EmailStr
    admin_instructions: str | None = Field(None, max_length=2000)


class MosqueUpdate(BaseModel):
    """Descriptive fields only; the code changes through regenerate-code."""

    name: str | None = Field(None, min_length=2, max_length=255)
    location: str | None = Field(None, min_length=2, max_length=500)
    description: str | None = Field(None, max_length=2000)
    contact_phone: str | None = Field(None, min_length=7, max_length=20)
    contact_email: EmailStr | None = None
    admin_instructions: str | None = Field(None, max_length=2000)


class MosqueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    location: str
    description: str | None
    contact_phone: str
    contact_email: str
    admin_instructions: str | None
    verification_code_expires: datetime
    created_at: datetime
    updated_at: datetime


class MosqueCreatedResponse(BaseModel):
    mosque: MosqueResponse
    verification_code: str
    verification_code_expires: datetime
    instructions: str


class BoundAdminSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    status: str


class MosqueListItem(MosqueResponse):
    active_admin: BoundAdminSummary | None = None


class MosqueListResponse(BaseModel):
    items: list[MosqueListItem]
    total: int
    skip: int
    limit: int


class PrayerTimes(BaseModel):
    """Congregation times; a prayer without a time is null."""

    fajr: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)
    dhuhr: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)
    asr: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)
    maghrib: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)
    isha: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)
    jummah: str | None = Field(None, pattern=PRAYER_TIME_PATTERN)


class MosqueDetailsUpdate(BaseModel):
    """Fields the mosque's own admin may change."""

    name: str | None = Field(None, min_length=2, max_length=255)
    location: str | None = Field(None, min_length=2, max_length=500)
    description: str | None = Field(None, max_length=2000)


class MosquePublicInfo(BaseModel):
    """What applicants and worshippers see. Never the code."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    location: str
    description: str | None
    contact_phone: str
    contact_email: str
    admin_instructions: str | None
    prayer_times: PrayerTimes

    @field_validator("prayer_times", mode="before")
    @classmethod
    def unset_prayer_times(cls, value: Any) -> Any:
        return {} if value is None else value


class MosquePublicListResponse(BaseModel):
    items: list[MosquePublicInfo]
    total: int
    skip: int
    limit: int


class MosquePrayerTimesResponse(BaseModel):
    mosque_id: UUID
    name: str
    location: str
    prayer_times: PrayerTimes

    @field_validator("prayer_times", mode="before")
    @classmethod
    def unset_prayer_times(cls, value: Any) -> Any:
        return {} if value is None else value


class MosqueVerificationResponse(BaseModel):
    mosque_id: UUID
    name: str
    verification_code: str
    verification_code_expires: datetime
    days_until_expiry: int
    is_expired: bool
    admins: list[BoundAdminSummary]


class RegenerateCodeRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)
    expiry_days: int | None = Field(None, ge=1, le=365)


class RegenerateCodeResponse(BaseModel):
    mosque_id: UUID
    verification_code: str
    verification_code_expires: datetime
    affected_admins: list[UUID]
    message: str


class DeleteMosqueResponse(BaseModel):
    mosque_id: UUID
    affected_admins: list[UUID]
    message: str


class ExpiringCodeItem(BaseModel):
    mosque_id: UUID
    name: str
    contact_email: str
    verification_code_expires: datetime
    days_until_expiry: int


class ExpiringCodesResponse(BaseModel):
    days: int
    items: list[ExpiringCodeItem]


class RegeneratedCodeItem(BaseModel):
    mosque_id: UUID
    name: str
    verification_code_expires: datetime


class BulkRegenerationResponse(BaseModel):
    executed_at: datetime
    regenerated: list[RegeneratedCodeItem]
    total: int
