"""
Mosque Service

Mosque management outside the admin lifecycle: creation (first code
issue), descriptive updates, the public directory, prayer times kept by
the mosque's own admin, the super admin verification view, expiring code
reports and bulk regeneration of expired codes.

Deleting a mosque and regenerating its code change admin statuses and are
handled by the admin lifecycle service.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mosque_registry.core import email as notifier
from mosque_registry.core.config import settings
from mosque_registry.modules.admins import lifecycle
from mosque_registry.modules.admins import repository as admin_repository
from mosque_registry.modules.admins.errors import (
    AdminNotFoundError,
    MosqueNotFoundError,
    NotMosqueAdminError,
)
from mosque_registry.modules.admins.helpers import snapshot_mosque
from mosque_registry.modules.admins.models import Admin, AdminStatus
from mosque_registry.modules.audit import recorder as audit_recorder
from mosque_registry.modules.audit.recorder import Actor
from mosque_registry.modules.mosques import codes
from mosque_registry.modules.mosques.codes import IssuedCode
from mosque_registry.modules.mosques.models import Mosque
from mosque_registry.modules.mosques.repository import MosqueRepository
from mosque_registry.modules.mosques.schemas import (
    MosqueCreate,
    MosqueDetailsUpdate,
    MosqueUpdate,
    PrayerTimes,
)

logger = logging.getLogger(__name__)

# Attempts before giving up on a unique code (collisions are practically impossible)
MAX_CODE_ATTEMPTS = 3

ADMIN_INSTRUCTIONS_TEMPLATE = (
    "Share this verification code with the person who will manage {name}. "
    "They register as admin with the mosque id and this code before {expires}. "
    "The code stops working when it expires or is regenerated."
)


class MosqueAction(str, enum.Enum):
    """Audit actions for mosque management."""

    CREATED = "mosque_created"
    UPDATED = "mosque_updated"
    PRAYER_TIMES_UPDATED = "prayer_times_updated"
    BULK_CODE_REGENERATION = "bulk_code_regeneration"


@dataclass
class BulkRegenerationResult:
    executed_at: datetime
    regenerated: list[tuple[Mosque, IssuedCode]] = field(default_factory=list)


@dataclass
class VerificationDetails:
    mosque: Mosque
    admins: list[Admin]
    now: datetime


async def create_mosque(
    db: AsyncSession,
    data: MosqueCreate,
    actor: Actor,
) -> tuple[Mosque, IssuedCode, str]:
    """
    Create a mosque and issue its first verification code.

    Returns:
        Tuple of (mosque, issued code, instructions for the super admin)
    """
    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        issued = codes.generate()
        try:
            mosque = await MosqueRepository.create(
                db,
                name=data.name,
                location=data.location,
                description=data.description,
                contact_phone=data.contact_phone,
                contact_email=str(data.contact_email),
                admin_instructions=data.admin_instructions,
                verification_code=issued.code,
                verification_code_expires=issued.expires_at,
            )
            await db.commit()
            break
        except IntegrityError:
            await db.rollback()
            if attempt == MAX_CODE_ATTEMPTS:
                raise
            logger.warning(f"Verification code collision creating mosque (attempt {attempt})")

    instructions = ADMIN_INSTRUCTIONS_TEMPLATE.format(
        name=mosque.name,
        expires=issued.expires_at.strftime("%Y-%m-%d"),
    )

    await audit_recorder.record(
        MosqueAction.CREATED,
        actor,
        subject_type="mosque",
        subject_id=mosque.id,
        mosque_id=mosque.id,
        after=snapshot_mosque(mosque),
    )
    try:
        await notifier.send_mosque_code(
            mosque.contact_email,
            mosque.name,
            issued.code,
            issued.expires_at,
            reason="Mosque registered",
        )
    except Exception as e:
        logger.error(f"Failed to send code email for new mosque {mosque.id}: {e}")

    return mosque, issued, instructions


async def get_mosque(db: AsyncSession, mosque_id: UUID) -> Mosque:
    mosque = await MosqueRepository.get_by_id(db, mosque_id)
    if mosque is None:
        raise MosqueNotFoundError(mosque_id)
    return mosque


async def list_mosques(
    db: AsyncSession,
    *,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Mosque], int, dict[UUID, Admin]]:
    """
    Page through mosques.

    Returns:
        Tuple of (mosques, total count, holding admin by mosque id)
    """
    mosques, total = await MosqueRepository.list_mosques(db, search=search, skip=skip, limit=limit)
    holders = await admin_repository.get_holders(db, [mosque.id for mosque in mosques])
    return mosques, total, holders


async def update_mosque(
    db: AsyncSession,
    mosque_id: UUID,
    data: MosqueUpdate,
    actor: Actor,
) -> Mosque:
    mosque = await get_mosque(db, mosque_id)
    before = snapshot_mosque(mosque)

    fields = data.model_dump(exclude_unset=True)
    if "contact_email" in fields and fields["contact_email"] is not None:
        fields["contact_email"] = str(fields["contact_email"])

    mosque = await MosqueRepository.update_details(db, mosque, **fields)
    await db.commit()

    logger.info(f"Mosque {mosque.id} updated by {actor.id}: {sorted(fields)}")
    await audit_recorder.record(
        MosqueAction.UPDATED,
        actor,
        subject_type="mosque",
        subject_id=mosque.id,
        mosque_id=mosque.id,
        before=before,
        after=snapshot_mosque(mosque),
        details={"fields": sorted(fields)},
    )
    return mosque


async def list_public_mosques(
    db: AsyncSession,
    *,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Mosque], int]:
    return await MosqueRepository.list_mosques(db, search=search, skip=skip, limit=limit)


async def _get_managed_mosque(db: AsyncSession, mosque_id: UUID, admin_id: UUID) -> Mosque:
    """
    Load a mosque for an edit by its own admin, locked for update.

    The token only says the admin was approved when it was issued; the
    current status and binding are read again here.
    """
    admin = await admin_repository.get_by_id(db, admin_id)
    if admin is None:
        raise AdminNotFoundError(admin_id)
    if admin.status != AdminStatus.APPROVED or admin.mosque_id != mosque_id:
        logger.warning(f"Admin {admin_id} ({admin.status.value}) tried to edit mosque {mosque_id}")
        raise NotMosqueAdminError(admin_id, mosque_id)

    mosque = await MosqueRepository.get_by_id(db, mosque_id, for_update=True)
    if mosque is None:
        raise MosqueNotFoundError(mosque_id)
    return mosque


async def update_details_as_admin(
    db: AsyncSession,
    mosque_id: UUID,
    data: MosqueDetailsUpdate,
    actor: Actor,
) -> Mosque:
    """Name, location and description, changed by the mosque's approved admin."""
    mosque = await _get_managed_mosque(db, mosque_id, actor.id)
    before = snapshot_mosque(mosque)

    fields = data.model_dump(exclude_unset=True)
    mosque = await MosqueRepository.update_details(db, mosque, **fields)
    await db.commit()

    logger.info(f"Mosque {mosque.id} updated by its admin {actor.id}: {sorted(fields)}")
    await audit_recorder.record(
        MosqueAction.UPDATED,
        actor,
        subject_type="mosque",
        subject_id=mosque.id,
        mosque_id=mosque.id,
        before=before,
        after=snapshot_mosque(mosque),
        details={"fields": sorted(fields)},
    )
    return mosque


async def update_prayer_times(
    db: AsyncSession,
    mosque_id: UUID,
    data: PrayerTimes,
    actor: Actor,
) -> Mosque:
    """
    Merge new congregation times into the mosque's schedule.

    Only the prayers present in ``data`` change; an explicit null clears one.
    """
    mosque = await _get_managed_mosque(db, mosque_id, actor.id)
    before = dict(mosque.prayer_times or {})
    merged = {**before, **data.model_dump(exclude_unset=True)}

    mosque = await MosqueRepository.update_details(db, mosque, prayer_times=merged)
    await db.commit()

    logger.info(f"Prayer times of mosque {mosque.id} updated by {actor.id}")
    await audit_recorder.record(
        MosqueAction.PRAYER_TIMES_UPDATED,
        actor,
        subject_type="mosque",
        subject_id=mosque.id,
        mosque_id=mosque.id,
        before={"prayer_times": before},
        after={"prayer_times": merged},
    )
    return mosque


async def get_verification_details(db: AsyncSession, mosque_id: UUID) -> VerificationDetails:
    """Current code, expiry and the admins holding the mosque."""
    mosque = await get_mosque(db, mosque_id)
    admins = await admin_repository.get_bound_to_mosque(db, mosque_id)
    return VerificationDetails(mosque=mosque, admins=admins, now=datetime.now(UTC))


async def list_expiring_codes(db: AsyncSession, days: int | None = None) -> list[Mosque]:
    now = datetime.now(UTC)
    window = days if days is not None else settings.code_expiry_warning_days
    return await MosqueRepository.get_expiring(db, now=now, until=now + timedelta(days=window))


async def regenerate_expired_codes(db: AsyncSession, actor: Actor) -> BulkRegenerationResult:
    """
    Issue fresh codes for every mosque whose code has expired.

    Admin statuses are not touched: an expired code only blocks new
    applications, it does not invalidate an approved admin.
    """
    now = datetime.now(UTC)
    result = BulkRegenerationResult(executed_at=now)

    mosques = await MosqueRepository.get_expired(db, now=now, for_update=True)
    for mosque in mosques:
        issued = lifecycle.rotate_code(mosque, now)
        result.regenerated.append((mosque, issued))

    await db.commit()

    if not result.regenerated:
        logger.info("No expired verification codes to regenerate")
        return result

    logger.info(f"Regenerated {len(result.regenerated)} expired verification code(s)")

    for mosque, issued in result.regenerated:
        await audit_recorder.record(
            MosqueAction.BULK_CODE_REGENERATION,
            actor,
            subject_type="mosque",
            subject_id=mosque.id,
            mosque_id=mosque.id,
            after=snapshot_mosque(mosque),
            reason="Verification code expired",
        )
        try:
            await notifier.send_mosque_code(
                mosque.contact_email,
                mosque.name,
                issued.code,
                issued.expires_at,
                reason="The previous code expired",
            )
        except Exception as e:
            logger.error(f"Failed to send renewed code for mosque {mosque.id}: {e}")

    return result
