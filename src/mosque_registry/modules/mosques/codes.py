"""
Verification Code Generator

Codes are drawn with ``secrets`` from an alphabet that drops characters
people confuse when reading a code aloud or copying it by hand
(0/O, 1/I/L, U/V). Comparison is case-insensitive because codes are
normalized to upper case before checking.

With 12 characters over 29 symbols there are about 3.5 * 10^17 codes, so
collisions are negligible; the unique constraint on
``mosques.verification_code`` remains the backstop.
"""

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta
from typing import NamedTuple

from mosque_registry.core.config import settings

CODE_ALPHABET = "ABCDEFGHJKMNPQRSTWXYZ23456789"


class IssuedCode(NamedTuple):
    """A freshly generated code and the moment it stops being valid."""

    code: str
    expires_at: datetime


def generate_verification_code(length: int | None = None) -> str:
    """Return a random code of ``length`` characters from CODE_ALPHABET."""
    length = length or settings.verification_code_length
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def calculate_code_expiry(now: datetime | None = None, expiry_days: int | None = None) -> datetime:
    now = now or datetime.now(UTC)
    days = expiry_days if expiry_days is not None else settings.verification_code_expiry_days
    return now + timedelta(days=days)


def generate(now: datetime | None = None, expiry_days: int | None = None) -> IssuedCode:
    """
    Issue a new verification code.

    Args:
        now: Clock reading to compute expiry from (defaults to current UTC time)
        expiry_days: Override for the configured validity period

    Returns:
        IssuedCode(code, expires_at)
    """
    return IssuedCode(
        code=generate_verification_code(),
        expires_at=calculate_code_expiry(now, expiry_days),
    )


def normalize_code(code: str) -> str:
    """Normalize user input: surrounding whitespace removed, upper case."""
    return code.strip().upper()


def codes_match(presented: str, current: str) -> bool:
    """Constant-time comparison of a presented code against the current one."""
    return hmac.compare_digest(normalize_code(presented).encode(), current.encode())


def code_fingerprint(code: str | None) -> str | None:
    """Short SHA-256 fingerprint used in logs and audit snapshots instead of the code."""
    if code is None:
        return None
    return hashlib.sha256(code.encode()).hexdigest()[:12]
