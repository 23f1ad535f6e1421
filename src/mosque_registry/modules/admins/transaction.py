"""
Transition Commit

``commit_transition`` runs one lifecycle transition as a single atomic unit:

1. Lock the rows involved with SELECT ... FOR UPDATE, mosque first, then the
   admins holding it, then the subject admin. The fixed order keeps two
   transitions on the same mosque from deadlocking.
2. Run the precondition against the locked rows.
3. Run the mutation.
4. Flush and commit.

Any failure rolls back the whole unit. Database errors are translated here
and nowhere else:

- unique violation on the active-slot index -> FacilityAlreadyStaffedError
- other integrity errors, stale version, serialization failure or
  deadlock -> ConflictLostError
- anything else from the driver or connection -> StorageUnavailableError
"""

import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from mosque_registry.modules.admins import repository as admin_repository
from mosque_registry.modules.admins.errors import (
    AdminNotFoundError,
    ConflictLostError,
    FacilityAlreadyStaffedError,
    LifecycleError,
    MosqueNotFoundError,
    StorageUnavailableError,
)
from mosque_registry.modules.admins.helpers import snapshot_admin, snapshot_mosque
from mosque_registry.modules.admins.models import ACTIVE_SLOT_INDEX, Admin
from mosque_registry.modules.mosques.models import Mosque
from mosque_registry.modules.mosques.repository import MosqueRepository

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure and deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


@dataclass
class TransitionContext:
    """Rows loaded for a transition plus whatever the mutation hands back."""

    now: datetime
    admin: Admin | None = None
    mosque: Mosque | None = None
    holder: Admin | None = None
    bound_admins: list[Admin] = field(default_factory=list)
    new_admin: Admin | None = None
    delete_mosque: bool = False
    before_admin: dict[str, Any] | None = None
    before_mosque: dict[str, Any] | None = None
    outcome: dict[str, Any] = field(default_factory=dict)


Step = Callable[[TransitionContext], None]


def no_precondition(ctx: TransitionContext) -> None:
    return None


def _is_active_slot_violation(error: IntegrityError) -> bool:
    constraint = getattr(error.orig, "constraint_name", None)
    if constraint == ACTIVE_SLOT_INDEX:
        return True
    message = str(error.orig)
    return ACTIVE_SLOT_INDEX in message or "admins.mosque_id" in message


def _sqlstate(error: DBAPIError) -> str | None:
    return getattr(error.orig, "sqlstate", None) or getattr(error.orig, "pgcode", None)


async def _rollback(db: AsyncSession) -> None:
    with contextlib.suppress(SQLAlchemyError, OSError):
        await db.rollback()


async def _load(
    db: AsyncSession,
    ctx: TransitionContext,
    *,
    admin_id: UUID | None,
    mosque_id: UUID | None,
    mosque_from_admin: bool,
    load_holder: bool,
    load_bound_admins: bool,
) -> None:
    if mosque_from_admin:
        peek = await admin_repository.get_by_id(db, admin_id)
        if peek is None:
            raise AdminNotFoundError(admin_id)
        mosque_id = peek.bound_mosque_id

    if mosque_id is not None:
        ctx.mosque = await MosqueRepository.get_by_id(db, mosque_id, for_update=True)
        if ctx.mosque is None:
            raise MosqueNotFoundError(mosque_id)
        if load_bound_admins:
            ctx.bound_admins = await admin_repository.get_bound_to_mosque(
                db, mosque_id, for_update=True
            )
        if load_holder:
            ctx.holder = await admin_repository.get_holder(db, mosque_id, for_update=True)

    if admin_id is not None:
        ctx.admin = await admin_repository.get_by_id(db, admin_id, for_update=True)
        if ctx.admin is None:
            raise AdminNotFoundError(admin_id)
        if mosque_from_admin and ctx.admin.bound_mosque_id != mosque_id:
            raise ConflictLostError(admin_id=admin_id)


async def commit_transition(
    db: AsyncSession,
    *,
    precondition: Step,
    mutation: Step,
    admin_id: UUID | None = None,
    mosque_id: UUID | None = None,
    mosque_from_admin: bool = False,
    load_holder: bool = False,
    load_bound_admins: bool = False,
    now: datetime | None = None,
) -> TransitionContext:
    """
    Lock, check, mutate and commit one transition.

    Args:
        db: Database session (must not be inside another unit of work)
        precondition: Raises a LifecycleError if the transition is not allowed
        mutation: Applies the transition to the loaded rows
        admin_id: Subject admin to lock, if any
        mosque_id: Mosque to lock, if any
        mosque_from_admin: Lock the mosque the subject admin holds or claims
        load_holder: Load the admin currently holding the mosque into ctx.holder
        load_bound_admins: Load every admin holding the mosque into ctx.bound_admins
        now: Clock reading shared by precondition and mutation

    Returns:
        The context after a successful commit

    Raises:
        LifecycleError: Precondition failure or translated database error
    """
    ctx = TransitionContext(now=now or datetime.now(UTC))
    mosque_key = mosque_id

    try:
        await _load(
            db,
            ctx,
            admin_id=admin_id,
            mosque_id=mosque_id,
            mosque_from_admin=mosque_from_admin,
            load_holder=load_holder,
            load_bound_admins=load_bound_admins,
        )
        if ctx.mosque is not None:
            mosque_key = ctx.mosque.id

        precondition(ctx)

        ctx.before_admin = snapshot_admin(ctx.admin) if ctx.admin is not None else None
        ctx.before_mosque = snapshot_mosque(ctx.mosque) if ctx.mosque is not None else None

        mutation(ctx)

        if ctx.new_admin is not None:
            db.add(ctx.new_admin)
        if ctx.delete_mosque and ctx.mosque is not None:
            await db.flush()
            await db.delete(ctx.mosque)

        await db.flush()
        await db.commit()
    except LifecycleError:
        await _rollback(db)
        raise
    except IntegrityError as e:
        await _rollback(db)
        if mosque_key is not None and _is_active_slot_violation(e):
            logger.warning(f"Active slot for mosque {mosque_key} taken by a concurrent commit")
            raise FacilityAlreadyStaffedError(mosque_key) from e
        logger.warning(f"Integrity conflict during transition: {e.orig}")
        raise ConflictLostError(admin_id=admin_id, mosque_id=mosque_key) from e
    except StaleDataError as e:
        await _rollback(db)
        logger.warning(f"Stale row during transition: {e}")
        raise ConflictLostError(admin_id=admin_id, mosque_id=mosque_key) from e
    except DBAPIError as e:
        await _rollback(db)
        if _sqlstate(e) in RETRYABLE_SQLSTATES:
            logger.warning(f"Transaction lost a concurrency race: {e.orig}")
            raise ConflictLostError(admin_id=admin_id, mosque_id=mosque_key) from e
        logger.error(f"Database error during transition: {e}")
        raise StorageUnavailableError() from e
    except (SQLAlchemyError, OSError) as e:
        await _rollback(db)
        logger.error(f"Storage failure during transition: {e}")
        raise StorageUnavailableError() from e

    return ctx
