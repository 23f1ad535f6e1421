"""
Super Admin Repository

Database operations for super admin accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.modules.shared import utcnow
from mosque_registry.modules.super_admins.models import SuperAdmin

logger = logging.getLogger(__name__)


class SuperAdminRepository:
    """Repository for super admin database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        name: str,
        password_hash: str,
        is_active: bool = True,
    ) -> SuperAdmin:
        """
        Create a new super admin record.

        Args:
            db: Database session
            email: Email address (unique, stored lowercase)
            name: Display name
            password_hash: Hashed password
            is_active: Whether the account can log in

        Returns:
            Created SuperAdmin instance
        """
        super_admin = SuperAdmin(
            email=email.lower(),
            name=name,
            password_hash=password_hash,
            is_active=is_active,
        )

        db.add(super_admin)
        await db.flush()
        await db.refresh(super_admin)

        logger.info(f"Created super admin: {super_admin.id} - {super_admin.email}")
        return super_admin

    @staticmethod
    async def get_by_id(db: AsyncSession, super_admin_id: UUID) -> SuperAdmin | None:
        result = await db.execute(select(SuperAdmin).where(SuperAdmin.id == super_admin_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> SuperAdmin | None:
        """Get a super admin by email (case-insensitive)."""
        result = await db.execute(select(SuperAdmin).where(SuperAdmin.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_last_login(db: AsyncSession, super_admin: SuperAdmin) -> None:
        super_admin.last_login_at = utcnow()
        await db.flush()
