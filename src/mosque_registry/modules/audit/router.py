"""
Audit Log Router

Read-only access to the audit trail for super admins.

Endpoints:
- GET /admin/audit-logs - List entries with filters, newest first
- GET /admin/audit-logs/{id} - Get one entry
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import SuperAdminUser, get_current_super_admin
from mosque_registry.core.database import get_db
from mosque_registry.modules.audit import repository
from mosque_registry.modules.audit.schemas import AuditLogListResponse, AuditLogResponse

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    actor_id: UUID | None = Query(None),
    subject_id: UUID | None = Query(None),
    mosque_id: UUID | None = Query(None),
    action: str | None = Query(None, max_length=64),
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    entries, total = await repository.list_entries(
        db,
        actor_id=actor_id,
        subject_id=subject_id,
        mosque_id=mosque_id,
        action=action,
        start=start,
        end=end,
        skip=skip,
        limit=limit,
    )
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{entry_id}", response_model=AuditLogResponse)
async def get_audit_log(
    entry_id: UUID,
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> AuditLogResponse:
    entry = await repository.get_by_id(db, entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "AUDIT_LOG_NOT_FOUND",
                "message": "Audit log entry not found.",
            },
        )
    return AuditLogResponse.model_validate(entry)
