"""
Admin Lifecycle Rules

Pure state-machine rules for admins and the mosque code they depend on.
Nothing here touches the database: ``check_*`` functions raise a
LifecycleError when a transition is not allowed, and the transition
functions mutate the (already locked) Admin and Mosque instances in place.
The service layer runs them inside ``commit_transition``.

State machine:

    (new) --apply--> pending --approve--> approved
    pending  --reject-->          rejected
    approved --remove-->          admin_removed
    approved --regenerate-code--> code_regenerated --revalidate-code--> approved

    mosque deleted: pending | approved | code_regenerated --> mosque_deleted
    reapply (can_reapply required):
        rejected | mosque_deleted | admin_removed | code_regenerated --> pending

Code rotation happens on reject, remove, regenerate and breach; never on
apply, approve or revalidation.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from mosque_registry.core.config import Settings, settings
from mosque_registry.modules.admins.errors import (
    ExpiredCodeError,
    FacilityAlreadyStaffedError,
    ReapplicationNotPermittedError,
    ReasonTooShortError,
    WrongCodeError,
    WrongStatusForTransitionError,
)
from mosque_registry.modules.admins.models import Admin, AdminStatus
from mosque_registry.modules.admins.states import (
    AdminRemovedState,
    ApprovedState,
    CodeRegeneratedState,
    MosqueDeletedState,
    MosqueSnapshot,
    PendingState,
    RejectedState,
    RejectionRecord,
)
from mosque_registry.modules.mosques import codes
from mosque_registry.modules.mosques.codes import IssuedCode
from mosque_registry.modules.mosques.models import Mosque

logger = logging.getLogger(__name__)


class TransitionKind(str, enum.Enum):
    """Lifecycle transitions; values double as audit log actions."""

    APPLY = "admin_applied"
    APPROVE = "admin_approved"
    REJECT = "admin_rejected"
    REMOVE = "admin_removed"
    DELETE_MOSQUE = "mosque_deleted"
    REGENERATE_CODE = "code_regenerated"
    REVALIDATE_CODE = "code_revalidated"
    REAPPLY = "admin_reapplied"
    ALLOW_REAPPLICATION = "reapplication_allowed"
    BREACH_ROTATION = "breach_detected"


REAPPLY_FROM = frozenset(
    {
        AdminStatus.REJECTED,
        AdminStatus.MOSQUE_DELETED,
        AdminStatus.ADMIN_REMOVED,
        AdminStatus.CODE_REGENERATED,
    }
)

# Admins moved to mosque_deleted when their mosque is deleted
CASCADE_STATUSES = frozenset(
    {AdminStatus.PENDING, AdminStatus.APPROVED, AdminStatus.CODE_REGENERATED}
)


@dataclass(frozen=True)
class LifecyclePolicy:
    """Tunable thresholds for the lifecycle rules."""

    max_rejections: int = 3
    min_rejection_reason_length: int = 10
    min_removal_reason_length: int = 10
    min_reapplication_reason_length: int = 50

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "LifecyclePolicy":
        config = config or settings
        return cls(
            max_rejections=config.max_rejections,
            min_rejection_reason_length=config.min_rejection_reason_length,
            min_removal_reason_length=config.min_removal_reason_length,
            min_reapplication_reason_length=config.min_reapplication_reason_length,
        )


# ============================================
# Checks
# ============================================


def require_status(admin: Admin, allowed: frozenset | set, transition: str) -> None:
    if admin.status not in allowed:
        raise WrongStatusForTransitionError(admin.id, admin.status, transition, allowed)


def require_reason(reason: str | None, minimum: int, field: str) -> str:
    """Return the stripped reason, or raise if it is shorter than ``minimum``."""
    cleaned = (reason or "").strip()
    if len(cleaned) < minimum:
        raise ReasonTooShortError(field, minimum, len(cleaned))
    return cleaned


def verify_code(mosque: Mosque, presented: str, now: datetime) -> None:
    """Match first, then expiry, so a wrong code never reveals expiry state."""
    if not codes.codes_match(presented, mosque.verification_code):
        raise WrongCodeError(mosque.id)
    if mosque.code_is_expired(now):
        raise ExpiredCodeError(mosque.id, mosque.verification_code_expires)


def require_unstaffed(
    mosque: Mosque, holder: Admin | None, applicant_id: UUID | None = None
) -> None:
    if holder is not None and holder.id != applicant_id:
        raise FacilityAlreadyStaffedError(mosque.id)


def check_apply(mosque: Mosque, holder: Admin | None, presented_code: str, now: datetime) -> None:
    verify_code(mosque, presented_code, now)
    require_unstaffed(mosque, holder)


def check_approve(admin: Admin) -> None:
    require_status(admin, {AdminStatus.PENDING}, "approve")


def check_reject(admin: Admin, reason: str | None, policy: LifecyclePolicy) -> str:
    require_status(admin, {AdminStatus.PENDING}, "reject")
    return require_reason(reason, policy.min_rejection_reason_length, "rejection reason")


def check_remove(admin: Admin, reason: str | None, policy: LifecyclePolicy) -> str:
    require_status(admin, {AdminStatus.APPROVED}, "remove")
    return require_reason(reason, policy.min_removal_reason_length, "removal reason")


def check_revalidate(admin: Admin, mosque: Mosque, presented_code: str, now: datetime) -> None:
    require_status(admin, {AdminStatus.CODE_REGENERATED}, "revalidate the code of")
    verify_code(mosque, presented_code, now)


def check_reapply(
    admin: Admin,
    mosque: Mosque,
    holder: Admin | None,
    presented_code: str,
    reason: str | None,
    now: datetime,
    policy: LifecyclePolicy,
) -> str:
    require_status(admin, REAPPLY_FROM, "reapply")
    if not admin.can_reapply:
        raise ReapplicationNotPermittedError(admin.id, admin.rejection_count)
    cleaned = require_reason(
        reason, policy.min_reapplication_reason_length, "reapplication reason"
    )
    verify_code(mosque, presented_code, now)
    require_unstaffed(mosque, holder, applicant_id=admin.id)
    return cleaned


def check_allow_reapplication(admin: Admin, policy: LifecyclePolicy) -> None:
    require_status(admin, {AdminStatus.REJECTED}, "allow reapplication for")
    if admin.rejection_count >= policy.max_rejections:
        raise ReapplicationNotPermittedError(
            admin.id,
            admin.rejection_count,
            message=f"Admin has been rejected {admin.rejection_count} times and cannot reapply.",
        )


# ============================================
# Mutations
# ============================================


def snapshot_mosque(mosque: Mosque) -> MosqueSnapshot:
    return MosqueSnapshot(mosque_id=mosque.id, name=mosque.name, location=mosque.location)


def rotate_code(mosque: Mosque, now: datetime, expiry_days: int | None = None) -> IssuedCode:
    """Replace the mosque's code; the previous value stops matching immediately."""
    issued = codes.generate(now, expiry_days)
    while issued.code == mosque.verification_code:
        issued = codes.generate(now, expiry_days)

    mosque.verification_code = issued.code
    mosque.verification_code_expires = issued.expires_at
    return issued


def bind_pending(admin: Admin, mosque: Mosque, now: datetime) -> None:
    admin.set_state(
        PendingState(
            mosque_id=mosque.id,
            verification_code_used=mosque.verification_code,
            applied_at=now,
        )
    )


def new_applicant(
    *,
    name: str,
    email: str,
    phone: str,
    password_hash: str,
    application_notes: str | None,
    mosque: Mosque,
    now: datetime,
) -> Admin:
    """Build a new pending admin bound to ``mosque``."""
    admin = Admin(
        id=uuid4(),
        name=name,
        email=email,
        phone=phone,
        password_hash=password_hash,
        application_notes=application_notes,
        rejection_count=0,
        can_reapply=False,
        rejection_history=[],
    )
    bind_pending(admin, mosque, now)
    return admin


def approve(admin: Admin, *, approved_by: UUID | None, notes: str | None, now: datetime) -> None:
    pending = admin.state
    admin.set_state(
        ApprovedState(
            mosque_id=pending.mosque_id,
            verification_code_used=pending.verification_code_used,
            approved_at=now,
            approved_by=approved_by,
            notes=notes,
        )
    )


def reject(
    admin: Admin,
    mosque: Mosque,
    *,
    reason: str,
    rejected_by: UUID | None,
    allow_reapply: bool,
    now: datetime,
    policy: LifecyclePolicy,
) -> IssuedCode:
    """
    Reject a pending admin and rotate the mosque's code.

    ``can_reapply`` defaults to False; the reviewer may grant it, but never
    once the admin has reached ``policy.max_rejections``.
    """
    admin.rejection_count += 1
    admin.append_rejection(
        RejectionRecord(
            mosque_id=mosque.id,
            mosque_name=mosque.name,
            rejected_at=now,
            reason=reason,
        )
    )
    admin.can_reapply = allow_reapply and admin.rejection_count < policy.max_rejections
    admin.set_state(
        RejectedState(
            reason=reason,
            rejected_at=now,
            rejected_by=rejected_by,
            mosque=snapshot_mosque(mosque),
        )
    )
    return rotate_code(mosque, now)


def remove(
    admin: Admin,
    mosque: Mosque,
    *,
    reason: str,
    removed_by: UUID | None,
    now: datetime,
) -> IssuedCode:
    admin.can_reapply = True
    admin.set_state(
        AdminRemovedState(
            reason=reason,
            removed_at=now,
            removed_by=removed_by,
            mosque=snapshot_mosque(mosque),
        )
    )
    return rotate_code(mosque, now)


def mark_mosque_deleted(
    admin: Admin,
    mosque: Mosque,
    *,
    reason: str,
    deleted_by: UUID | None,
    now: datetime,
) -> None:
    admin.can_reapply = True
    admin.set_state(
        MosqueDeletedState(
            reason=reason,
            deleted_at=now,
            deleted_by=deleted_by,
            mosque=snapshot_mosque(mosque),
        )
    )


def regenerate(
    mosque: Mosque,
    bound_admins: list[Admin],
    *,
    reason: str,
    regenerated_by: UUID | None,
    now: datetime,
    expiry_days: int | None = None,
) -> tuple[IssuedCode, list[Admin]]:
    """
    Rotate the code and suspend every approved admin of the mosque.

    Returns:
        The new code and the admins moved to code_regenerated
    """
    previous_fingerprint = codes.code_fingerprint(mosque.verification_code)
    issued = rotate_code(mosque, now, expiry_days)

    moved = []
    for admin in bound_admins:
        if admin.status != AdminStatus.APPROVED:
            continue
        approved = admin.state
        admin.can_reapply = True
        admin.set_state(
            CodeRegeneratedState(
                mosque_id=mosque.id,
                reason=reason,
                regenerated_at=now,
                regenerated_by=regenerated_by,
                mosque=snapshot_mosque(mosque),
                previous_code_fingerprint=previous_fingerprint,
                approved_at=approved.approved_at,
                approved_by=approved.approved_by,
                notes=approved.notes,
            )
        )
        moved.append(admin)

    return issued, moved


def revalidate(admin: Admin, mosque: Mosque) -> None:
    """Restore the suspended approval, now tied to the mosque's current code."""
    suspended = admin.state
    admin.can_reapply = False
    admin.set_state(
        ApprovedState(
            mosque_id=suspended.mosque_id,
            verification_code_used=mosque.verification_code,
            approved_at=suspended.approved_at,
            approved_by=suspended.approved_by,
            notes=suspended.notes,
        )
    )


def reapply(admin: Admin, mosque: Mosque, *, reason: str, now: datetime) -> None:
    if admin.was_rejected_by(mosque.id):
        logger.info(
            f"Admin {admin.id} is reapplying to mosque {mosque.id}, which rejected them before"
        )

    admin.application_notes = reason
    admin.can_reapply = False
    bind_pending(admin, mosque, now)


def allow_reapplication(admin: Admin) -> None:
    admin.can_reapply = True
