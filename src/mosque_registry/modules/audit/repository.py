"""
Audit Log Repository
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.modules.audit.models import AuditLog


async def create(
    db: AsyncSession,
    *,
    action: str,
    actor_id: UUID | None,
    actor_type: str,
    subject_type: str,
    subject_id: UUID,
    actor_email: str | None = None,
    actor_name: str | None = None,
    mosque_id: UUID | None = None,
    before_data: dict[str, Any] | None = None,
    after_data: dict[str, Any] | None = None,
    reason: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    entry = AuditLog(
        id=uuid4(),
        action=action,
        actor_id=actor_id,
        actor_type=actor_type,
        actor_email=actor_email,
        actor_name=actor_name,
        subject_type=subject_type,
        subject_id=subject_id,
        mosque_id=mosque_id,
        before_data=before_data,
        after_data=after_data,
        reason=reason,
        details=details,
        ip_address=ip_address,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_by_id(db: AsyncSession, entry_id: UUID) -> AuditLog | None:
    result = await db.execute(select(AuditLog).where(AuditLog.id == entry_id))
    return result.scalar_one_or_none()


async def list_entries(
    db: AsyncSession,
    *,
    actor_id: UUID | None = None,
    subject_id: UUID | None = None,
    mosque_id: UUID | None = None,
    action: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """
    Query the audit log, newest first.

    Args:
        db: Database session
        actor_id: Only entries performed by this actor
        subject_id: Only entries about this admin or mosque
        mosque_id: Only entries touching this mosque
        action: Only entries of this action
        start: Inclusive lower bound on created_at
        end: Exclusive upper bound on created_at
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (entries, total count matching filters)
    """
    query = select(AuditLog)

    if actor_id:
        query = query.where(AuditLog.actor_id == actor_id)
    if subject_id:
        query = query.where(AuditLog.subject_id == subject_id)
    if mosque_id:
        query = query.where(AuditLog.mosque_id == mosque_id)
    if action:
        query = query.where(AuditLog.action == action)
    if start:
        query = query.where(AuditLog.created_at >= start)
    if end:
        query = query.where(AuditLog.created_at < end)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    query = query.order_by(AuditLog.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total
