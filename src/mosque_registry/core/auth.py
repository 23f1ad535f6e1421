"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module handles JWT token validation and role-based access control
using the security utilities defined in security.py.

Two kinds of callers:
- super admins (role "super_admin"): manage mosques and review admins
- admin accounts (role "admin"): applicants and approved mosque admins.
  Accounts that are not approved receive a *limited* token that only
  reaches their own status, reapply and revalidate-code endpoints.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when the PYTHON_ENV environment
  variable is explicitly set to "development"
- Settings default to production, so an unset PYTHON_ENV keeps test tokens off
"""

import logging
import os
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mosque_registry.core.config import settings
from mosque_registry.core.security import decode_token

logger = logging.getLogger(__name__)

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class SuperAdminUser:
    """
    Represents an authenticated super admin.

    Populated from JWT claims after token validation.
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"SuperAdminUser(id={self.id}, email={self.email})"


@dataclass
class AdminAccountUser:
    """
    Represents an authenticated mosque admin account.

    Attributes:
        id: Admin's unique identifier
        email: Admin's email address
        status: Admin status when the token was issued
        limited: True for tokens issued to accounts that are not approved
        name: Admin's display name
    """

    id: UUID
    email: str
    status: str
    limited: bool = False
    name: str | None = None


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Returns:
        True only if ALL safety checks pass
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = env_var == "development" and settings.is_development and not settings.is_production

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


# Development mode flag - allows mock authentication for LOCAL testing ONLY
_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_SUPER_ADMIN = SuperAdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="superadmin@mosque-registry.dev",
    role=ROLE_SUPER_ADMIN,
    name="Development Super Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": error, "message": message},
    )


def _decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode a JWT and check it is an access token with a UUID subject.

    Raises:
        HTTPException 401: If token is invalid, expired or of the wrong type
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        subject = payload.get("sub")
        if not subject:
            raise ValueError("Missing 'sub' claim in token")
        payload["sub"] = UUID(subject)
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return payload


async def get_current_super_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SuperAdminUser:
    """
    FastAPI dependency that validates the JWT token and returns the super admin.

    Usage:
        @router.get("/admin/endpoint")
        async def admin_endpoint(
            super_admin: SuperAdminUser = Depends(get_current_super_admin)
        ):
            ...

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the caller is not a super admin
    """
    token = credentials.credentials

    if _DEVELOPMENT_MODE:
        if token in ("dev-token", "test-token"):
            logger.debug("Development mode: Using test token")
            return _DEV_SUPER_ADMIN
        try:
            user_id = UUID(token)
            return SuperAdminUser(
                id=user_id,
                email=f"superadmin-{str(user_id)[:8]}@mosque-registry.dev",
                role=ROLE_SUPER_ADMIN,
                name="Test Super Admin",
            )
        except ValueError:
            pass

    payload = _decode_access_token(token)
    user = SuperAdminUser(
        id=payload["sub"],
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        name=payload.get("name"),
    )

    if user.role != ROLE_SUPER_ADMIN:
        logger.warning(
            f"Access denied: {user.id} ({user.email}) has role '{user.role}', "
            "but 'super_admin' is required"
        )
        raise _forbidden(
            "SUPER_ADMIN_ACCESS_REQUIRED", "Super admin access is required for this endpoint."
        )

    logger.debug(f"Authenticated super admin: {user.id} ({user.email})")
    return user


async def get_current_admin_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminAccountUser:
    """
    FastAPI dependency for admin account endpoints.

    Accepts both full and limited admin tokens.
    """
    payload = _decode_access_token(credentials.credentials)

    if payload.get("role") != ROLE_ADMIN:
        raise _forbidden("ADMIN_ACCESS_REQUIRED", "An admin account token is required.")

    return AdminAccountUser(
        id=payload["sub"],
        email=payload.get("email", ""),
        status=payload.get("status", ""),
        limited=bool(payload.get("limited", False)),
        name=payload.get("name"),
    )


async def get_approved_admin(
    account: AdminAccountUser = Depends(get_current_admin_account),
) -> AdminAccountUser:
    """
    FastAPI dependency for endpoints that change a mosque.

    Only full tokens issued to approved admins pass. The caller's binding to
    a particular mosque is checked again against the database by the service.

    Raises:
        HTTPException 403: Limited token, or the account was not approved
    """
    if account.limited or account.status != "approved":
        logger.warning(f"Limited admin token rejected: {account.id} (status {account.status})")
        raise _forbidden(
            "APPROVED_ADMIN_REQUIRED", "Only approved mosque admins can use this endpoint."
        )
    return account


__all__ = [
    "AdminAccountUser",
    "SuperAdminUser",
    "get_approved_admin",
    "get_current_admin_account",
    "get_current_super_admin",
]
