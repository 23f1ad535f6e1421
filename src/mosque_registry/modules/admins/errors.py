"""
Lifecycle Errors

Every failure the lifecycle engine can report. Each error carries:
- kind: the category callers branch on
- error_code: machine-readable code returned to API clients
- status_code: HTTP status the routers respond with
- context: structured data (ids, timestamps) for building messages
"""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_CODE = "invalid_code"
    PRECONDITION_FAILED = "precondition_failed"
    CONFLICT_LOST = "conflict_lost"
    STORAGE_UNAVAILABLE = "storage_unavailable"


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


class LifecycleError(Exception):
    """Base class for lifecycle engine errors."""

    kind: ErrorKind = ErrorKind.PRECONDITION_FAILED
    error_code: str = "LIFECYCLE_ERROR"
    status_code: int = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {key: _jsonable(value) for key, value in context.items()}
        super().__init__(message)


# ============================================
# Not found
# ============================================


class NotFoundError(LifecycleError):
    kind = ErrorKind.NOT_FOUND
    error_code = "NOT_FOUND"
    status_code = 404


class MosqueNotFoundError(NotFoundError):
    error_code = "MOSQUE_NOT_FOUND"

    def __init__(self, mosque_id: UUID | None):
        super().__init__("Mosque not found.", mosque_id=mosque_id)


class AdminNotFoundError(NotFoundError):
    error_code = "ADMIN_NOT_FOUND"

    def __init__(self, admin_id: UUID | None):
        super().__init__("Admin not found.", admin_id=admin_id)


# ============================================
# Invalid code
# ============================================


class InvalidCodeError(LifecycleError):
    kind = ErrorKind.INVALID_CODE
    error_code = "INVALID_VERIFICATION_CODE"
    status_code = 400


class WrongCodeError(InvalidCodeError):
    def __init__(self, mosque_id: UUID):
        super().__init__("Invalid verification code.", mosque_id=mosque_id, reason="mismatch")


class ExpiredCodeError(InvalidCodeError):
    error_code = "VERIFICATION_CODE_EXPIRED"

    def __init__(self, mosque_id: UUID, expired_at: datetime):
        super().__init__(
            "Verification code has expired. Please contact the super admin for a new code.",
            mosque_id=mosque_id,
            reason="expired",
            expired_at=expired_at,
        )


# ============================================
# Preconditions
# ============================================


class PreconditionFailedError(LifecycleError):
    kind = ErrorKind.PRECONDITION_FAILED
    error_code = "PRECONDITION_FAILED"
    status_code = 400


class FacilityAlreadyStaffedError(PreconditionFailedError):
    """An active admin already holds the mosque; the code is treated as leaked."""

    error_code = "ADMIN_ALREADY_EXISTS"
    status_code = 409

    def __init__(self, mosque_id: UUID, **context: Any):
        super().__init__(
            "This mosque already has an admin. The verification code has been "
            "regenerated for security.",
            mosque_id=mosque_id,
            **context,
        )


class WrongStatusForTransitionError(PreconditionFailedError):
    error_code = "INVALID_STATUS"
    status_code = 409

    def __init__(self, admin_id: UUID, current_status: Any, transition: str, allowed: Any):
        super().__init__(
            f"Cannot {transition} an admin with status '{_jsonable(current_status)}'.",
            admin_id=admin_id,
            current_status=current_status,
            transition=transition,
            allowed_statuses=sorted(_jsonable(s) for s in allowed),
        )


class ReapplicationNotPermittedError(PreconditionFailedError):
    error_code = "REAPPLICATION_NOT_ALLOWED"
    status_code = 403

    def __init__(self, admin_id: UUID, rejection_count: int, message: str | None = None):
        super().__init__(
            message or "You are not allowed to reapply. Please contact the super admin.",
            admin_id=admin_id,
            rejection_count=rejection_count,
        )


class ReasonTooShortError(PreconditionFailedError):
    error_code = "INVALID_REASON_LENGTH"

    def __init__(self, field: str, minimum: int, actual: int):
        super().__init__(
            f"The {field} must be at least {minimum} characters.",
            field=field,
            minimum_length=minimum,
            actual_length=actual,
        )


class AccountAlreadyExistsError(PreconditionFailedError):
    error_code = "DUPLICATE_ACCOUNT"
    status_code = 409

    def __init__(self, field: str, **context: Any):
        super().__init__(
            f"An admin account with this {field} already exists. Log in to check its status.",
            field=field,
            **context,
        )


class NotMosqueAdminError(PreconditionFailedError):
    """The caller is not the approved admin of the mosque it tried to change."""

    error_code = "NOT_MOSQUE_ADMIN"
    status_code = 403

    def __init__(self, admin_id: UUID, mosque_id: UUID):
        super().__init__(
            "Only the approved admin of this mosque can change it.",
            admin_id=admin_id,
            mosque_id=mosque_id,
        )


# ============================================
# Commit failures
# ============================================


class ConflictLostError(LifecycleError):
    """A concurrent transition committed first; reread before retrying."""

    kind = ErrorKind.CONFLICT_LOST
    error_code = "CONFLICT_LOST"
    status_code = 409

    def __init__(
        self,
        message: str = "The record was changed by another request. Reload and try again.",
        **context: Any,
    ):
        super().__init__(message, **context)


class StorageUnavailableError(LifecycleError):
    kind = ErrorKind.STORAGE_UNAVAILABLE
    error_code = "STORAGE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "The database is temporarily unavailable.", **context: Any):
        super().__init__(message, **context)
