"""
Mosque Repository

Database operations for mosques. Functions flush but never commit; the
calling service owns the transaction.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.modules.mosques.models import Mosque

logger = logging.getLogger(__name__)


class MosqueRepository:
    """Repository for mosque database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        location: str,
        contact_phone: str,
        contact_email: str,
        verification_code: str,
        verification_code_expires: datetime,
        description: str | None = None,
        admin_instructions: str | None = None,
    ) -> Mosque:
        mosque = Mosque(
            name=name,
            location=location,
            description=description,
            contact_phone=contact_phone,
            contact_email=contact_email,
            admin_instructions=admin_instructions,
            verification_code=verification_code,
            verification_code_expires=verification_code_expires,
        )
        db.add(mosque)
        await db.flush()
        await db.refresh(mosque)

        logger.info(f"Created mosque: {mosque.id} ({mosque.name})")
        return mosque

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        mosque_id: UUID,
        *,
        for_update: bool = False,
    ) -> Mosque | None:
        """
        Load a mosque by id.

        With ``for_update`` the row is locked until the transaction ends and
        the identity-map copy is refreshed from the locked row.
        """
        query = select(Mosque).where(Mosque.id == mosque_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_mosques(
        db: AsyncSession,
        *,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Mosque], int]:
        """List mosques, newest first, with an optional name/location search."""
        query = select(Mosque)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Mosque.name.ilike(pattern), Mosque.location.ilike(pattern)))

        total_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = query.order_by(Mosque.created_at.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def get_expiring(
        db: AsyncSession,
        *,
        now: datetime,
        until: datetime,
    ) -> list[Mosque]:
        """Mosques whose code is still valid at ``now`` but expires by ``until``."""
        result = await db.execute(
            select(Mosque)
            .where(
                Mosque.verification_code_expires > now,
                Mosque.verification_code_expires <= until,
            )
            .order_by(Mosque.verification_code_expires.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_expired(
        db: AsyncSession,
        *,
        now: datetime,
        for_update: bool = False,
    ) -> list[Mosque]:
        query = select(Mosque).where(Mosque.verification_code_expires <= now)
        if for_update:
            query = query.with_for_update(skip_locked=True)
        result = await db.execute(query.order_by(Mosque.verification_code_expires.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def update_details(db: AsyncSession, mosque: Mosque, **fields) -> Mosque:
        """Update descriptive fields. The verification code is never changed here."""
        for key, value in fields.items():
            setattr(mosque, key, value)
        await db.flush()
        await db.refresh(mosque)
        return mosque
