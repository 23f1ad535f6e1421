"""
Security Utilities

Password hashing (bcrypt) and JWT creation/validation (python-jose).
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from mosque_registry.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def _encode(claims: dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    to_encode = {**claims, "iat": now, "exp": now + expires_delta}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: Value of the ``sub`` claim (account id)
        additional_claims: Extra claims such as email, role, name
        expires_delta: Lifetime override; defaults to access_token_expire_minutes

    Returns:
        Encoded JWT
    """
    claims = {"sub": subject, "type": "access", **(additional_claims or {})}
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(claims, lifetime)


def create_refresh_token(subject: str) -> str:
    """Create a signed refresh token."""
    return _encode(
        {"sub": subject, "type": "refresh"},
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a JWT.

    Returns:
        The claims dict, or None if the signature is invalid or the token expired
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None
