"""
Admin Lifecycle Service

Entry points for every admin lifecycle transition. Each public function:

1. Runs the transition through ``commit_transition`` (lock, check, mutate,
   commit as one unit).
2. After the commit, records an audit entry and sends notifications. Both
   are best-effort and cannot change the outcome.
3. Returns a TransitionResult. Lifecycle and storage errors never escape;
   they come back as ``result.error``.

Transitions:
- apply_for_mosque: new account -> pending (breach rotation on a staffed mosque)
- approve_admin: pending -> approved
- reject_admin: pending -> rejected (rotates the mosque code)
- remove_admin: approved -> admin_removed (rotates the mosque code)
- delete_mosque: pending | approved | code_regenerated -> mosque_deleted, mosque removed
- regenerate_mosque_code: approved -> code_regenerated (rotates the mosque code)
- revalidate_code: code_regenerated -> approved
- reapply: rejected | mosque_deleted | admin_removed | code_regenerated -> pending
- allow_reapplication: rejected -> rejected with can_reapply set

Security:
- A valid code presented for a mosque that already has an admin is treated
  as leaked: the code is rotated immediately in a separate transaction.
- Codes are never logged or audited in plain text.
"""

import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core import email as notifier
from mosque_registry.core.security import hash_password
from mosque_registry.modules.admins import lifecycle
from mosque_registry.modules.admins import repository as admin_repository
from mosque_registry.modules.admins.errors import (
    AccountAlreadyExistsError,
    ErrorKind,
    FacilityAlreadyStaffedError,
    LifecycleError,
    MosqueNotFoundError,
    StorageUnavailableError,
)
from mosque_registry.modules.admins.helpers import snapshot_admin, snapshot_mosque
from mosque_registry.modules.admins.lifecycle import LifecyclePolicy, TransitionKind
from mosque_registry.modules.admins.models import Admin, AdminStatus
from mosque_registry.modules.admins.transaction import (
    TransitionContext,
    commit_transition,
    no_precondition,
)
from mosque_registry.modules.audit import recorder as audit_recorder
from mosque_registry.modules.audit.recorder import SYSTEM_ACTOR, Actor
from mosque_registry.modules.mosques.codes import IssuedCode, code_fingerprint
from mosque_registry.modules.mosques.models import Mosque

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_NOTES = "Approved by super admin"
DEFAULT_DELETION_REASON = "Mosque deleted by super admin"
DEFAULT_REGENERATION_REASON = "Verification code regenerated by super admin"


@dataclass
class TransitionResult:
    """Outcome of one transition: either the updated records or an error."""

    transition: TransitionKind
    admin: Admin | None = None
    mosque: Mosque | None = None
    error: LifecycleError | None = None
    issued_code: IssuedCode | None = None
    affected_admins: list[Admin] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None


def _policy() -> LifecyclePolicy:
    return LifecyclePolicy.from_settings()


# ============================================
# Boundary helpers
# ============================================


async def _run(
    db: AsyncSession,
    transition: TransitionKind,
    operation: Callable[[], Awaitable[TransitionResult]],
) -> TransitionResult:
    """Run a transition and convert every lifecycle or storage error into a result."""
    try:
        return await operation()
    except LifecycleError as e:
        logger.warning(f"{transition.value} refused: {e.error_code} {e.context}")
        await _rollback(db)
        return TransitionResult(transition=transition, error=e)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"{transition.value} failed: storage error: {e}")
        await _rollback(db)
        return TransitionResult(transition=transition, error=StorageUnavailableError())


async def _rollback(db: AsyncSession) -> None:
    with contextlib.suppress(SQLAlchemyError, OSError):
        await db.rollback()


async def _notify(send: Awaitable[bool], description: str) -> None:
    try:
        sent = await send
        if not sent:
            logger.error(f"Failed to send {description} email")
    except Exception as e:
        logger.error(f"Failed to send {description} email: {e}")


async def _audit_admin(
    transition: TransitionKind,
    actor: Actor,
    admin: Admin,
    *,
    before: dict | None,
    mosque_id: UUID | None,
    reason: str | None = None,
    details: dict | None = None,
) -> None:
    await audit_recorder.record(
        transition,
        actor,
        subject_type="admin",
        subject_id=admin.id,
        mosque_id=mosque_id,
        before=before,
        after=snapshot_admin(admin),
        reason=reason,
        details=details,
    )


def _rotation_details(before_mosque: dict | None, issued: IssuedCode) -> dict:
    return {
        "previous_code": before_mosque["verification_code"] if before_mosque else None,
        "new_code": code_fingerprint(issued.code),
        "new_code_expires": issued.expires_at.isoformat(),
    }


def _applicant_actor(admin: Admin, ip_address: str | None = None) -> Actor:
    return Actor(
        id=admin.id,
        type="admin",
        email=admin.email,
        name=admin.name,
        ip_address=ip_address,
    )


# ============================================
# Breach rotation
# ============================================


async def _rotate_after_breach(
    db: AsyncSession,
    error: FacilityAlreadyStaffedError,
    mosque_id: UUID,
    attempted_by: str,
) -> None:
    """
    Rotate the code of a mosque whose valid code was presented while it
    already has an admin.

    Runs in its own transaction because the failed application has already
    been rolled back. The outcome is added to ``error.context``.
    """

    def mutation(ctx: TransitionContext) -> None:
        ctx.outcome["issued"] = lifecycle.rotate_code(ctx.mosque, ctx.now)

    try:
        ctx = await commit_transition(
            db,
            precondition=no_precondition,
            mutation=mutation,
            mosque_id=mosque_id,
        )
    except LifecycleError as e:
        logger.error(
            f"SECURITY: breach rotation for mosque {mosque_id} failed: {e.error_code}"
        )
        error.context["code_rotated"] = False
        return

    error.context["code_rotated"] = True
    issued: IssuedCode = ctx.outcome["issued"]
    logger.warning(
        f"SECURITY: valid code for mosque {mosque_id} presented by {attempted_by} "
        f"while the mosque already has an admin. Code rotated."
    )

    await audit_recorder.record(
        TransitionKind.BREACH_ROTATION,
        SYSTEM_ACTOR,
        subject_type="mosque",
        subject_id=ctx.mosque.id,
        mosque_id=ctx.mosque.id,
        before=ctx.before_mosque,
        after=snapshot_mosque(ctx.mosque),
        reason="Verification code used while the mosque already has an admin",
        details={"attempted_by": attempted_by, **_rotation_details(ctx.before_mosque, issued)},
    )
    await _notify(
        notifier.send_mosque_code(
            to_email=ctx.mosque.contact_email,
            mosque_name=ctx.mosque.name,
            code=issued.code,
            expires_at=issued.expires_at,
            reason="Security: the previous code was used by another applicant",
        ),
        "breach rotation",
    )


# ============================================
# Apply / Reapply
# ============================================


async def apply_for_mosque(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    phone: str,
    password: str,
    mosque_id: UUID,
    verification_code: str,
    application_notes: str | None = None,
    ip_address: str | None = None,
) -> TransitionResult:
    """
    Register a new admin account and bind it to a mosque as pending.

    Args:
        db: Database session
        name: Applicant's full name
        email: Applicant's email (must not belong to an existing admin)
        phone: Applicant's phone (must not belong to an existing admin)
        password: Plain password, stored as a bcrypt hash
        mosque_id: Mosque to apply for
        verification_code: Code the applicant received from the mosque
        application_notes: Optional message to the reviewer
        ip_address: Caller address, kept on the audit entry

    Returns:
        TransitionResult with the new admin, or an error:
        AccountAlreadyExists, MosqueNotFound, InvalidCode, FacilityAlreadyStaffed
    """
    transition = TransitionKind.APPLY

    async def operation() -> TransitionResult:
        if await admin_repository.get_by_email(db, email):
            raise AccountAlreadyExistsError("email")
        if await admin_repository.get_by_phone(db, phone):
            raise AccountAlreadyExistsError("phone")

        password_hash = hash_password(password)

        def precondition(ctx: TransitionContext) -> None:
            lifecycle.check_apply(ctx.mosque, ctx.holder, verification_code, ctx.now)

        def mutation(ctx: TransitionContext) -> None:
            ctx.new_admin = lifecycle.new_applicant(
                name=name,
                email=email.lower(),
                phone=phone,
                password_hash=password_hash,
                application_notes=application_notes,
                mosque=ctx.mosque,
                now=ctx.now,
            )

        try:
            ctx = await commit_transition(
                db,
                precondition=precondition,
                mutation=mutation,
                mosque_id=mosque_id,
                load_holder=True,
            )
        except FacilityAlreadyStaffedError as e:
            await _rotate_after_breach(db, e, mosque_id, attempted_by=email)
            raise

        admin = ctx.new_admin
        logger.info(f"Admin {admin.id} applied for mosque {ctx.mosque.id}")

        await _audit_admin(
            transition,
            _applicant_actor(admin, ip_address),
            admin,
            before=None,
            mosque_id=ctx.mosque.id,
            reason=application_notes,
        )
        await _notify(
            notifier.send_application_received(admin.email, admin.name, ctx.mosque.name),
            "application received",
        )
        return TransitionResult(transition=transition, admin=admin, mosque=ctx.mosque)

    return await _run(db, transition, operation)


async def reapply(
    db: AsyncSession,
    *,
    admin_id: UUID,
    mosque_id: UUID,
    verification_code: str,
    reason: str,
    ip_address: str | None = None,
) -> TransitionResult:
    """
    Move an admin back to pending for a (possibly different) mosque.

    Requires can_reapply; resets it on success so a further rejection needs
    a fresh grant. Breach handling is the same as for a new application.
    """
    transition = TransitionKind.REAPPLY
    policy = _policy()

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            ctx.outcome["reason"] = lifecycle.check_reapply(
                ctx.admin, ctx.mosque, ctx.holder, verification_code, reason, ctx.now, policy
            )

        def mutation(ctx: TransitionContext) -> None:
            lifecycle.reapply(ctx.admin, ctx.mosque, reason=ctx.outcome["reason"], now=ctx.now)

        try:
            ctx = await commit_transition(
                db,
                precondition=precondition,
                mutation=mutation,
                admin_id=admin_id,
                mosque_id=mosque_id,
                load_holder=True,
            )
        except FacilityAlreadyStaffedError as e:
            await _rotate_after_breach(db, e, mosque_id, attempted_by=str(admin_id))
            raise

        admin = ctx.admin
        logger.info(f"Admin {admin.id} reapplied for mosque {ctx.mosque.id}")

        await _audit_admin(
            transition,
            _applicant_actor(admin, ip_address),
            admin,
            before=ctx.before_admin,
            mosque_id=ctx.mosque.id,
            reason=ctx.outcome["reason"],
            details={"previously_rejected_here": admin.was_rejected_by(ctx.mosque.id)},
        )
        await _notify(
            notifier.send_application_received(admin.email, admin.name, ctx.mosque.name),
            "reapplication received",
        )
        return TransitionResult(transition=transition, admin=admin, mosque=ctx.mosque)

    return await _run(db, transition, operation)


# ============================================
# Super admin decisions
# ============================================


async def approve_admin(
    db: AsyncSession,
    admin_id: UUID,
    actor: Actor,
    notes: str | None = None,
) -> TransitionResult:
    """Approve a pending admin. No code check: the code was verified at apply time."""
    transition = TransitionKind.APPROVE

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            lifecycle.check_approve(ctx.admin)

        def mutation(ctx: TransitionContext) -> None:
            lifecycle.approve(
                ctx.admin,
                approved_by=actor.id,
                notes=(notes or "").strip() or DEFAULT_APPROVAL_NOTES,
                now=ctx.now,
            )

        ctx = await commit_transition(
            db,
            precondition=precondition,
            mutation=mutation,
            admin_id=admin_id,
            mosque_from_admin=True,
        )

        admin, mosque = ctx.admin, ctx.mosque
        logger.info(f"Admin {admin.id} approved by {actor.id}")

        await _audit_admin(
            transition,
            actor,
            admin,
            before=ctx.before_admin,
            mosque_id=admin.mosque_id,
            reason=notes,
        )
        await _notify(
            notifier.send_admin_status_update(
                admin.email, admin.name, mosque.name if mosque else None, AdminStatus.APPROVED.value
            ),
            "approval",
        )
        return TransitionResult(transition=transition, admin=admin, mosque=mosque)

    return await _run(db, transition, operation)


async def reject_admin(
    db: AsyncSession,
    admin_id: UUID,
    actor: Actor,
    reason: str,
    allow_reapply: bool = False,
) -> TransitionResult:
    """
    Reject a pending admin.

    Increments rejection_count, appends the binding to the rejection history
    and rotates the mosque's code. ``allow_reapply`` is ignored once the admin
    reaches the configured maximum number of rejections.
    """
    transition = TransitionKind.REJECT
    policy = _policy()

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            ctx.outcome["reason"] = lifecycle.check_reject(ctx.admin, reason, policy)

        def mutation(ctx: TransitionContext) -> None:
            ctx.outcome["issued"] = lifecycle.reject(
                ctx.admin,
                ctx.mosque,
                reason=ctx.outcome["reason"],
                rejected_by=actor.id,
                allow_reapply=allow_reapply,
                now=ctx.now,
                policy=policy,
            )

        ctx = await commit_transition(
            db,
            precondition=precondition,
            mutation=mutation,
            admin_id=admin_id,
            mosque_from_admin=True,
        )

        admin, mosque = ctx.admin, ctx.mosque
        issued: IssuedCode = ctx.outcome["issued"]
        logger.info(
            f"Admin {admin.id} rejected by {actor.id} "
            f"(rejections: {admin.rejection_count}, can_reapply: {admin.can_reapply})"
        )

        await _audit_admin(
            transition,
            actor,
            admin,
            before=ctx.before_admin,
            mosque_id=mosque.id,
            reason=ctx.outcome["reason"],
            details={
                "allow_reapply_requested": allow_reapply,
                **_rotation_details(ctx.before_mosque, issued),
            },
        )
        await _notify(
            notifier.send_admin_status_update(
                admin.email,
                admin.name,
                mosque.name,
                AdminStatus.REJECTED.value,
                ctx.outcome["reason"],
            ),
            "rejection",
        )
        await _notify(
            notifier.send_mosque_code(
                mosque.contact_email, mosque.name, issued.code, issued.expires_at,
                reason="An admin application was rejected",
            ),
            "code rotation",
        )
        return TransitionResult(
            transition=transition, admin=admin, mosque=mosque, issued_code=issued
        )

    return await _run(db, transition, operation)


async def remove_admin(
    db: AsyncSession,
    admin_id: UUID,
    actor: Actor,
    reason: str,
) -> TransitionResult:
    """Remove an approved admin from its mosque and rotate the mosque's code."""
    transition = TransitionKind.REMOVE
    policy = _policy()

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            ctx.outcome["reason"] = lifecycle.check_remove(ctx.admin, reason, policy)

        def mutation(ctx: TransitionContext) -> None:
            ctx.outcome["issued"] = lifecycle.remove(
                ctx.admin,
                ctx.mosque,
                reason=ctx.outcome["reason"],
                removed_by=actor.id,
                now=ctx.now,
            )

        ctx = await commit_transition(
            db,
            precondition=precondition,
            mutation=mutation,
            admin_id=admin_id,
            mosque_from_admin=True,
        )

        admin, mosque = ctx.admin, ctx.mosque
        issued: IssuedCode = ctx.outcome["issued"]
        logger.info(f"Admin {admin.id} removed from mosque {mosque.id} by {actor.id}")

        await _audit_admin(
            transition,
            actor,
            admin,
            before=ctx.before_admin,
            mosque_id=mosque.id,
            reason=ctx.outcome["reason"],
            details=_rotation_details(ctx.before_mosque, issued),
        )
        await _notify(
            notifier.send_admin_status_update(
                admin.email,
                admin.name,
                mosque.name,
                AdminStatus.ADMIN_REMOVED.value,
                ctx.outcome["reason"],
            ),
            "removal",
        )
        await _notify(
            notifier.send_mosque_code(
                mosque.contact_email, mosque.name, issued.code, issued.expires_at,
                reason="The mosque admin was removed",
            ),
            "code rotation",
        )
        return TransitionResult(
            transition=transition, admin=admin, mosque=mosque, issued_code=issued
        )

    return await _run(db, transition, operation)


async def allow_reapplication(
    db: AsyncSession,
    admin_id: UUID,
    actor: Actor,
    notes: str | None = None,
) -> TransitionResult:
    """Let a rejected admin apply again. rejection_count is left unchanged."""
    transition = TransitionKind.ALLOW_REAPPLICATION
    policy = _policy()

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            lifecycle.check_allow_reapplication(ctx.admin, policy)

        def mutation(ctx: TransitionContext) -> None:
            lifecycle.allow_reapplication(ctx.admin)

        ctx = await commit_transition(
            db,
            precondition=precondition,
            mutation=mutation,
            admin_id=admin_id,
        )

        admin = ctx.admin
        logger.info(f"Admin {admin.id} allowed to reapply by {actor.id}")

        await _audit_admin(
            transition, actor, admin, before=ctx.before_admin, mosque_id=None, reason=notes
        )
        await _notify(
            notifier.send_admin_status_update(
                admin.email, admin.name, None, TransitionKind.ALLOW_REAPPLICATION.value, notes
            ),
            "reapplication allowed",
        )
        return TransitionResult(transition=transition, admin=admin)

    return await _run(db, transition, operation)


# ============================================
# Mosque-wide transitions
# ============================================


async def delete_mosque(
    db: AsyncSession,
    mosque_id: UUID,
    actor: Actor,
    reason: str | None = None,
) -> TransitionResult:
    """
    Delete a mosque and move every admin holding it to mosque_deleted.

    Each affected admin keeps a snapshot of the mosque's name and location
    and may reapply elsewhere.
    """
    transition = TransitionKind.DELETE_MOSQUE
    reason = (reason or "").strip() or DEFAULT_DELETION_REASON

    async def operation() -> TransitionResult:
        def mutation(ctx: TransitionContext) -> None:
            affected = []
            for admin in ctx.bound_admins:
                if admin.status not in lifecycle.CASCADE_STATUSES:
                    continue
                before = snapshot_admin(admin)
                lifecycle.mark_mosque_deleted(
                    admin, ctx.mosque, reason=reason, deleted_by=actor.id, now=ctx.now
                )
                affected.append((admin, before))
            ctx.outcome["affected"] = affected
            ctx.delete_mosque = True

        ctx = await commit_transition(
            db,
            precondition=no_precondition,
            mutation=mutation,
            mosque_id=mosque_id,
            load_bound_admins=True,
        )

        mosque = ctx.mosque
        affected = ctx.outcome["affected"]
        logger.info(f"Mosque {mosque_id} deleted by {actor.id}; {len(affected)} admin(s) affected")

        await audit_recorder.record(
            transition,
            actor,
            subject_type="mosque",
            subject_id=mosque_id,
            mosque_id=mosque_id,
            before=ctx.before_mosque,
            after=None,
            reason=reason,
            details={"affected_admins": [str(admin.id) for admin, _ in affected]},
        )
        for admin, before in affected:
            await _audit_admin(
                transition, actor, admin, before=before, mosque_id=mosque_id, reason=reason
            )
            await _notify(
                notifier.send_admin_status_update(
                    admin.email, admin.name, mosque.name, AdminStatus.MOSQUE_DELETED.value, reason
                ),
                "mosque deletion",
            )

        return TransitionResult(
            transition=transition,
            mosque=mosque,
            affected_admins=[admin for admin, _ in affected],
        )

    return await _run(db, transition, operation)


async def regenerate_mosque_code(
    db: AsyncSession,
    mosque_id: UUID,
    actor: Actor,
    reason: str | None = None,
    expiry_days: int | None = None,
) -> TransitionResult:
    """
    Rotate a mosque's code on request.

    Approved admins of the mosque move to code_regenerated and must enter
    the new code to return to approved.
    """
    transition = TransitionKind.REGENERATE_CODE
    reason = (reason or "").strip() or DEFAULT_REGENERATION_REASON

    async def operation() -> TransitionResult:
        def mutation(ctx: TransitionContext) -> None:
            befores = {admin.id: snapshot_admin(admin) for admin in ctx.bound_admins}
            issued, moved = lifecycle.regenerate(
                ctx.mosque,
                ctx.bound_admins,
                reason=reason,
                regenerated_by=actor.id,
                now=ctx.now,
                expiry_days=expiry_days,
            )
            ctx.outcome["issued"] = issued
            ctx.outcome["moved"] = [(admin, befores[admin.id]) for admin in moved]

        ctx = await commit_transition(
            db,
            precondition=no_precondition,
            mutation=mutation,
            mosque_id=mosque_id,
            load_bound_admins=True,
        )

        mosque = ctx.mosque
        issued: IssuedCode = ctx.outcome["issued"]
        moved = ctx.outcome["moved"]
        logger.info(
            f"Verification code for mosque {mosque.id} regenerated by {actor.id}; "
            f"{len(moved)} admin(s) must revalidate"
        )

        await audit_recorder.record(
            transition,
            actor,
            subject_type="mosque",
            subject_id=mosque.id,
            mosque_id=mosque.id,
            before=ctx.before_mosque,
            after=snapshot_mosque(mosque),
            reason=reason,
            details={
                "affected_admins": [str(admin.id) for admin, _ in moved],
                **_rotation_details(ctx.before_mosque, issued),
            },
        )
        for admin, before in moved:
            await _audit_admin(
                transition, actor, admin, before=before, mosque_id=mosque.id, reason=reason
            )
            await _notify(
                notifier.send_admin_status_update(
                    admin.email, admin.name, mosque.name, AdminStatus.CODE_REGENERATED.value, reason
                ),
                "code regeneration",
            )
        await _notify(
            notifier.send_mosque_code(
                mosque.contact_email, mosque.name, issued.code, issued.expires_at, reason=reason
            ),
            "code rotation",
        )

        return TransitionResult(
            transition=transition,
            mosque=mosque,
            issued_code=issued,
            affected_admins=[admin for admin, _ in moved],
        )

    return await _run(db, transition, operation)


async def revalidate_code(
    db: AsyncSession,
    admin_id: UUID,
    verification_code: str,
    ip_address: str | None = None,
) -> TransitionResult:
    """
    Restore a code_regenerated admin to approved with the mosque's new code.

    A wrong or expired code leaves the admin unchanged; this is a normal
    retry path and never triggers breach handling.
    """
    transition = TransitionKind.REVALIDATE_CODE

    async def operation() -> TransitionResult:
        def precondition(ctx: TransitionContext) -> None:
            if ctx.admin.status == AdminStatus.CODE_REGENERATED and ctx.mosque is None:
                raise MosqueNotFoundError(ctx.admin.code_regenerated_mosque_id)
            lifecycle.check_revalidate(ctx.admin, ctx.mosque, verification_code, ctx.now)

        def mutation(ctx: TransitionContext) -> None:
            lifecycle.revalidate(ctx.admin, ctx.mosque)

        ctx = await commit_transition(
            db,
            precondition=precondition,
            mutation=mutation,
            admin_id=admin_id,
            mosque_from_admin=True,
        )

        admin, mosque = ctx.admin, ctx.mosque
        logger.info(f"Admin {admin.id} revalidated the code for mosque {mosque.id}")

        await _audit_admin(
            transition,
            _applicant_actor(admin, ip_address),
            admin,
            before=ctx.before_admin,
            mosque_id=mosque.id,
        )
        return TransitionResult(transition=transition, admin=admin, mosque=mosque)

    return await _run(db, transition, operation)


# ============================================
# Queries
# ============================================


async def get_admin(db: AsyncSession, admin_id: UUID) -> Admin | None:
    return await admin_repository.get_by_id(db, admin_id)


async def list_admins(
    db: AsyncSession,
    *,
    status: AdminStatus | None = None,
    mosque_id: UUID | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Admin], int]:
    return await admin_repository.list_admins(
        db, status=status, mosque_id=mosque_id, search=search, skip=skip, limit=limit
    )
