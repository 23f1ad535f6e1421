"""
Mosque Background Jobs

Scheduled tasks for verification code upkeep:
1. Regenerate expired codes (hourly). Admin statuses are not touched.
2. Log mosques whose code expires within the warning window (daily).

Jobs open their own database sessions and are safe to run repeatedly:
a code is only regenerated while it is expired, and the new code is not.
"""

import logging
from datetime import timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from mosque_registry.core.config import settings
from mosque_registry.core.database import async_session_maker
from mosque_registry.core.scheduler import register_job
from mosque_registry.modules.audit.recorder import SYSTEM_ACTOR
from mosque_registry.modules.mosques import service
from mosque_registry.modules.mosques.repository import MosqueRepository
from mosque_registry.modules.shared import utcnow

logger = logging.getLogger(__name__)

JOB_ID_REGENERATE_EXPIRED = "mosques_regenerate_expired_codes"
JOB_ID_WARN_EXPIRING = "mosques_warn_expiring_codes"


async def regenerate_expired_codes_job() -> dict[str, Any]:
    async with async_session_maker() as db:
        result = await service.regenerate_expired_codes(db, SYSTEM_ACTOR)

    return {
        "executed_at": result.executed_at.isoformat(),
        "regenerated": [str(mosque.id) for mosque, _ in result.regenerated],
    }


async def warn_expiring_codes_job() -> dict[str, Any]:
    """Log a warning for each mosque whose code expires within the warning window."""
    now = utcnow()
    until = now + timedelta(days=settings.code_expiry_warning_days)

    async with async_session_maker() as db:
        mosques = await MosqueRepository.get_expiring(db, now=now, until=until)

    for mosque in mosques:
        logger.warning(
            f"Verification code for mosque {mosque.id} ({mosque.name}) expires in "
            f"{mosque.days_until_expiry(now)} day(s)"
        )

    return {"expiring": [str(mosque.id) for mosque in mosques]}


def register_mosque_jobs() -> None:
    register_job(
        job_id=JOB_ID_REGENERATE_EXPIRED,
        func=regenerate_expired_codes_job,
        trigger=IntervalTrigger(hours=settings.expired_code_job_interval_hours),
    )
    register_job(
        job_id=JOB_ID_WARN_EXPIRING,
        func=warn_expiring_codes_job,
        trigger=IntervalTrigger(days=1),
    )
    logger.info("Mosque background jobs registered")
