"""
Admin Account Router

Endpoints used by applicants and mosque admins themselves.

Endpoints:
- POST /admins/register - Apply to manage a mosque (public)
- GET /admins/me - Current account and lifecycle state (limited token ok)
- POST /admins/me/reapply - Reapply after rejection, removal or deletion
- POST /admins/me/revalidate-code - Enter a mosque's regenerated code

Security:
- Registration is rate limited per client IP
- Code revalidation is rate limited per admin to slow down guessing
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import AdminAccountUser, get_current_admin_account
from mosque_registry.core.database import get_db
from mosque_registry.core.rate_limit import enforce_rate_limit
from mosque_registry.modules.admins import service
from mosque_registry.modules.admins.errors import AdminNotFoundError
from mosque_registry.modules.admins.http import client_ip, error_to_http, raise_for_result
from mosque_registry.modules.admins.schemas import (
    AdminRegistrationRequest,
    AdminResponse,
    ReapplyRequest,
    RevalidateCodeRequest,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_REGISTER = (10, 3600)  # 10 registrations per hour per IP
RATE_LIMIT_REVALIDATE = (5, 900)  # 5 attempts per 15 minutes per admin
RATE_LIMIT_REAPPLY = (5, 3600)  # 5 reapplications per hour per admin


@router.post(
    "/register",
    response_model=TransitionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    data: AdminRegistrationRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Apply to become the admin of a mosque.

    The applicant needs the mosque id and its current verification code.
    The account starts as pending until a super admin reviews it.

    Raises:
        HTTPException 400: Wrong or expired code
        HTTPException 404: Mosque not found
        HTTPException 409: Mosque already has an admin, or email/phone in use
        HTTPException 429: Too many registrations from this IP
    """
    ip_address = client_ip(request)
    await enforce_rate_limit(f"admins:register:{ip_address or 'unknown'}", *RATE_LIMIT_REGISTER)

    result = raise_for_result(
        await service.apply_for_mosque(
            db,
            name=data.name.strip(),
            email=str(data.email),
            phone=data.phone,
            password=data.password,
            mosque_id=data.mosque_id,
            verification_code=data.verification_code,
            application_notes=data.application_notes,
            ip_address=ip_address,
        )
    )

    return TransitionResponse(
        message="Application submitted. You will be notified once it has been reviewed.",
        admin=AdminResponse.from_admin(result.admin),
    )


@router.get("/me", response_model=AdminResponse)
async def get_me(
    account: AdminAccountUser = Depends(get_current_admin_account),
    db: AsyncSession = Depends(get_db),
) -> AdminResponse:
    """Current account and lifecycle state."""
    admin = await service.get_admin(db, account.id)
    if admin is None:
        raise error_to_http(AdminNotFoundError(account.id))
    return AdminResponse.from_admin(admin)


@router.post("/me/reapply", response_model=TransitionResponse)
async def reapply(
    data: ReapplyRequest,
    request: Request,
    account: AdminAccountUser = Depends(get_current_admin_account),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Reapply for a mosque (the same one or another).

    Requires the account to be allowed to reapply and a reason of at least
    50 characters.

    Raises:
        HTTPException 400: Wrong or expired code, reason too short
        HTTPException 403: Reapplication not allowed
        HTTPException 409: Wrong status, or the mosque already has an admin
    """
    await enforce_rate_limit(f"admins:reapply:{account.id}", *RATE_LIMIT_REAPPLY)

    result = raise_for_result(
        await service.reapply(
            db,
            admin_id=account.id,
            mosque_id=data.mosque_id,
            verification_code=data.verification_code,
            reason=data.reason,
            ip_address=client_ip(request),
        )
    )

    return TransitionResponse(
        message="Reapplication submitted. You will be notified once it has been reviewed.",
        admin=AdminResponse.from_admin(result.admin),
    )


@router.post("/me/revalidate-code", response_model=TransitionResponse)
async def revalidate_code(
    data: RevalidateCodeRequest,
    request: Request,
    account: AdminAccountUser = Depends(get_current_admin_account),
    db: AsyncSession = Depends(get_db),
) -> TransitionResponse:
    """
    Restore access after the mosque's code was regenerated.

    Raises:
        HTTPException 400: Wrong or expired code
        HTTPException 409: Account is not waiting for a new code
        HTTPException 429: Too many attempts
    """
    await enforce_rate_limit(f"admins:revalidate:{account.id}", *RATE_LIMIT_REVALIDATE)

    result = raise_for_result(
        await service.revalidate_code(
            db, account.id, data.verification_code, ip_address=client_ip(request)
        )
    )

    return TransitionResponse(
        message="Code accepted. Your admin access has been restored.",
        admin=AdminResponse.from_admin(result.admin),
    )
