"""Authentication router."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from mosque_registry.core.config import settings
from mosque_registry.core.database import get_db
from mosque_registry.core.security import (
    create_access_token,
    create_refresh_token,
    verify_password,
)
from mosque_registry.modules.admins import repository as admin_repository
from mosque_registry.modules.admins.models import AdminStatus
from mosque_registry.modules.auth.schemas import (
    AdminLoginResponse,
    LoginRequest,
    SuperAdminLoginResponse,
    SuperAdminResponse,
)
from mosque_registry.modules.super_admins import SuperAdminRepository

logger = logging.getLogger(__name__)

router = APIRouter()

LIMITED_ACCESS_MESSAGES = {
    AdminStatus.PENDING: "Your application is awaiting review.",
    AdminStatus.REJECTED: "Your application was rejected.",
    AdminStatus.MOSQUE_DELETED: "The mosque you managed has been deleted.",
    AdminStatus.ADMIN_REMOVED: "You have been removed as admin of your mosque.",
    AdminStatus.CODE_REGENERATED: "Your mosque's code was regenerated. Enter the new code.",
}


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


@router.post("/super-admin/login", response_model=SuperAdminLoginResponse)
async def super_admin_login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> SuperAdminLoginResponse:
    """
    Authenticate a super admin and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
    """
    super_admin = await SuperAdminRepository.get_by_email(db, credentials.email)

    if not super_admin or not verify_password(credentials.password, super_admin.password_hash):
        logger.warning(f"Failed super admin login for: {credentials.email}")
        raise _invalid_credentials()

    if not super_admin.is_active:
        logger.warning(f"Login attempt for inactive super admin: {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    await SuperAdminRepository.update_last_login(db, super_admin)
    await db.commit()

    access_token = create_access_token(
        subject=str(super_admin.id),
        additional_claims={
            "email": super_admin.email,
            "role": ROLE_SUPER_ADMIN,
            "name": super_admin.name,
        },
    )
    refresh_token = create_refresh_token(subject=str(super_admin.id))

    logger.info(f"Super admin logged in: {super_admin.email}")

    return SuperAdminLoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        super_admin=SuperAdminResponse(
            id=str(super_admin.id),
            email=super_admin.email,
            name=super_admin.name,
            last_login_at=super_admin.last_login_at,
        ),
    )


@router.post("/admin/login", response_model=AdminLoginResponse)
async def admin_login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AdminLoginResponse:
    """
    Authenticate a mosque admin.

    Approved admins receive a full token pair. Any other status receives a
    limited token that only reaches the status, reapply and
    revalidate-code endpoints.
    """
    admin = await admin_repository.get_by_email(db, credentials.email)

    if not admin or not verify_password(credentials.password, admin.password_hash):
        logger.warning(f"Failed admin login for: {credentials.email}")
        raise _invalid_credentials()

    claims = {
        "email": admin.email,
        "role": ROLE_ADMIN,
        "name": admin.name,
        "status": admin.status.value,
    }

    if admin.status == AdminStatus.APPROVED:
        logger.info(f"Admin logged in: {admin.email}")
        return AdminLoginResponse(
            access_token=create_access_token(
                subject=str(admin.id),
                additional_claims={**claims, "limited": False},
            ),
            refresh_token=create_refresh_token(subject=str(admin.id)),
            limited=False,
            admin_id=str(admin.id),
            status=admin.status.value,
        )

    logger.info(f"Admin logged in with limited access: {admin.email} ({admin.status.value})")
    return AdminLoginResponse(
        access_token=create_access_token(
            subject=str(admin.id),
            additional_claims={**claims, "limited": True},
            expires_delta=timedelta(minutes=settings.limited_token_expire_minutes),
        ),
        limited=True,
        admin_id=str(admin.id),
        status=admin.status.value,
        message=LIMITED_ACCESS_MESSAGES.get(admin.status),
    )
