"""
Admin Repository

Database operations for admins. Lifecycle changes do not go through this
module directly; ``transaction.commit_transition`` loads rows from here
under lock and the lifecycle rules mutate them.
"""

import logging
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.modules.admins.models import ACTIVE_STATUSES, Admin, AdminStatus

logger = logging.getLogger(__name__)


async def get_by_id(db: AsyncSession, admin_id: UUID, *, for_update: bool = False) -> Admin | None:
    query = select(Admin).where(Admin.id == admin_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> Admin | None:
    result = await db.execute(select(Admin).where(func.lower(Admin.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_by_phone(db: AsyncSession, phone: str) -> Admin | None:
    result = await db.execute(select(Admin).where(Admin.phone == phone))
    return result.scalar_one_or_none()


def _holds_mosque(mosque_id: UUID):
    """Admins occupying or claiming the mosque's slot."""
    return or_(
        and_(Admin.mosque_id == mosque_id, Admin.status.in_(ACTIVE_STATUSES)),
        and_(
            Admin.code_regenerated_mosque_id == mosque_id,
            Admin.status == AdminStatus.CODE_REGENERATED,
        ),
    )


async def get_holder(
    db: AsyncSession,
    mosque_id: UUID,
    *,
    for_update: bool = False,
) -> Admin | None:
    """
    Return the admin holding the mosque, if any.

    A code_regenerated admin still holds its mosque until it revalidates or
    moves on.
    """
    query = select(Admin).where(_holds_mosque(mosque_id)).order_by(Admin.created_at.asc())
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalars().first()


async def get_bound_to_mosque(
    db: AsyncSession,
    mosque_id: UUID,
    *,
    for_update: bool = False,
) -> list[Admin]:
    """All pending, approved and code_regenerated admins of a mosque."""
    query = select(Admin).where(_holds_mosque(mosque_id)).order_by(Admin.created_at.asc())
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_holders(db: AsyncSession, mosque_ids: list[UUID]) -> dict[UUID, Admin]:
    """Map each mosque id to the admin holding it; mosques without one are absent."""
    if not mosque_ids:
        return {}

    query = (
        select(Admin)
        .where(or_(*(_holds_mosque(mosque_id) for mosque_id in mosque_ids)))
        .order_by(Admin.created_at.asc())
    )
    result = await db.execute(query)

    holders: dict[UUID, Admin] = {}
    for admin in result.scalars().all():
        holders.setdefault(admin.bound_mosque_id, admin)
    return holders


async def list_admins(
    db: AsyncSession,
    *,
    status: AdminStatus | None = None,
    mosque_id: UUID | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Admin], int]:
    """
    List admins for the super admin dashboard.

    Args:
        db: Database session
        status: Filter by lifecycle status (optional)
        mosque_id: Filter by the mosque the admin holds or claims (optional)
        search: Case-insensitive match on name, email or phone (optional)
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (admins, total count matching filters)
    """
    query = select(Admin)

    if status:
        query = query.where(Admin.status == status)

    if mosque_id:
        query = query.where(
            or_(Admin.mosque_id == mosque_id, Admin.code_regenerated_mosque_id == mosque_id)
        )

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Admin.name.ilike(pattern), Admin.email.ilike(pattern), Admin.phone.ilike(pattern))
        )

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    query = query.order_by(Admin.created_at.asc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Admin.status, func.count()).group_by(Admin.status))
    counts = {status.value: 0 for status in AdminStatus}
    for status, count in result.all():
        counts[status.value] = count
    return counts
