"""
Admin Review Router

API endpoints for super admins to review and manage mosque admins.
All endpoints require a super admin token.

Endpoints:
- GET /admin/admins - List admins with filters and pagination
- GET /admin/admins/{id} - Get admin details
- POST /admin/admins/{id}/approve - Approve a pending admin
- POST /admin/admins/{id}/reject - Reject a pending admin
- POST /admin/admins/{id}/remove - Remove an approved admin
- POST /admin/admins/{id}/allow-reapplication - Let a rejected admin reapply

Security:
- Rate limiting on action endpoints to prevent abuse
- Audit logging for all actions (in the lifecycle service)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import SuperAdminUser, get_current_super_admin
from mosque_registry.core.database import get_db
from mosque_registry.core.rate_limit import enforce_rate_limit
from mosque_registry.modules.admins import repository as admin_repository
from mosque_registry.modules.admins import service
from mosque_registry.modules.admins.errors import AdminNotFoundError
from mosque_registry.modules.admins.http import client_ip, error_to_http, raise_for_result
from mosque_registry.modules.admins.models import AdminStatus
from mosque_registry.modules.admins.schemas import (
    AdminListResponse,
    AdminResponse,
    AllowReapplicationRequest,
    ApproveRequest,
    RejectRequest,
    RemoveRequest,
    TransitionResponse,
)
from mosque_registry.modules.audit.recorder import Actor

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_ACTIONS = (30, 60)  # 30 lifecycle actions per minute per super admin


async def _check_action_rate_limit(super_admin: SuperAdminUser, action: str) -> None:
    await enforce_rate_limit(f"super_admin:{action}:{super_admin.id}", *RATE_LIMIT_ACTIONS)


def to_actor(super_admin: SuperAdminUser, request: Request) -> Actor:
    return Actor(
        id=super_admin.id,
        type="super_admin",
        email=super_admin.email,
        name=super_admin.name,
        ip_address=client_ip(request),
    )


# ============================================
# Queries
# ============================================


@router.get("", response_model=AdminListResponse)
async def list_admins(
    status_filter: AdminStatus | None = Query(None, alias="status"),
    mosque_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminListResponse:
    """
    List admins with optional filters.

    Args:
        status_filter: Only admins in this status
        mosque_id: Only admins bound to this mosque
        search: Case-insensitive match on name, email or phone
    """
    admins, total = await service.list_admins(
        db, status=status_filter, mosque_id=mosque_id, search=search, skip=skip, limit=limit
    )
    counts = await admin_repository.count_by_status(db)

    return AdminListResponse(
        items=[AdminResponse.from_admin(admin) for admin in admins],
        total=total,
        skip=skip,
        limit=limit,
        status_counts=counts,
    )


@router.get("/{admin_id}", response_model=AdminResponse)
async def get_admin(
    admin_id: UUID,
    _super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminResponse:
    admin = await service.get_admin(db, admin_id)
    if admin is None:
        raise error_to_http(AdminNotFoundError(admin_id))
    return AdminResponse.from_admin(admin)


# ============================================
# Actions
# ============================================


@router.post("/{admin_id}/approve", response_model=TransitionResponse)
async def approve_admin(
    admin_id: UUID,
    request: Request,
    data: ApproveRequest | None = None,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Approve a pending admin.

    Raises:
        HTTPException 404: Admin not found
        HTTPException 409: Admin is not pending
    """
    await _check_action_rate_limit(super_admin, "approve")

    result = raise_for_result(
        await service.approve_admin(
            db, admin_id, to_actor(super_admin, request), notes=data.notes if data else None
        )
    )
    return TransitionResponse(
        message="Admin approved.",
        admin=AdminResponse.from_admin(result.admin),
    )


@router.post("/{admin_id}/reject", response_model=TransitionResponse)
async def reject_admin(
    admin_id: UUID,
    data: RejectRequest,
    request: Request,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Reject a pending admin. The mosque's code is rotated.

    Raises:
        HTTPException 400: Reason too short
        HTTPException 404: Admin not found
        HTTPException 409: Admin is not pending
    """
    await _check_action_rate_limit(super_admin, "reject")

    result = raise_for_result(
        await service.reject_admin(
            db,
            admin_id,
            to_actor(super_admin, request),
            reason=data.reason,
            allow_reapply=data.allow_reapply,
        )
    )
    return TransitionResponse(
        message="Admin rejected. The mosque's verification code has been rotated.",
        admin=AdminResponse.from_admin(result.admin),
    )


@router.post("/{admin_id}/remove", response_model=TransitionResponse)
async def remove_admin(
    admin_id: UUID,
    data: RemoveRequest,
    request: Request,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Remove an approved admin from their mosque. The mosque's code is rotated.

    Raises:
        HTTPException 400: Reason too short
        HTTPException 404: Admin not found
        HTTPException 409: Admin is not approved
    """
    await _check_action_rate_limit(super_admin, "remove")

    result = raise_for_result(
        await service.remove_admin(db, admin_id, to_actor(super_admin, request), reason=data.reason)
    )
    return TransitionResponse(
        message="Admin removed. The mosque's verification code has been rotated.",
        admin=AdminResponse.from_admin(result.admin),
    )


@router.post("/{admin_id}/allow-reapplication", response_model=TransitionResponse)
async def allow_reapplication(
    admin_id: UUID,
    request: Request,
    data: AllowReapplicationRequest | None = None,
    super_admin: SuperAdminUser = Depends(get_current_super_admin),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Allow a rejected admin to reapply.

    Raises:
        HTTPException 403: Admin has reached the rejection limit
        HTTPException 404: Admin not found
        HTTPException 409: Admin is not rejected
    """
    await _check_action_rate_limit(super_admin, "allow_reapplication")

    result = raise_for_result(
        await service.allow_reapplication(
            db, admin_id, to_actor(super_admin, request), notes=data.notes if data else None
        )
    )
    return TransitionResponse(
        message="Admin may now reapply.",
        admin=AdminResponse.from_admin(result.admin),
    )
