"""
Audit Recorder

Writes audit entries in their own session, after the transition they
describe has committed. ``record`` never raises: a failed write is logged
as AUDIT_FAILURE and the caller carries on.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from mosque_registry.core.database import async_session_maker
from mosque_registry.modules.audit import repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performed an action."""

    id: UUID | None
    type: str
    email: str | None = None
    name: str | None = None
    ip_address: str | None = None


SYSTEM_ACTOR = Actor(id=None, type="system", name="System")


async def record(
    action: str,
    actor: Actor,
    *,
    subject_type: str,
    subject_id: UUID,
    mosque_id: UUID | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    reason: str | None = None,
    details: dict[str, Any] | None = None,
) -> UUID | None:
    """
    Append one audit entry.

    Returns:
        The entry id, or None if it could not be written
    """
    try:
        async with async_session_maker() as session:
            entry = await repository.create(
                session,
                action=str(getattr(action, "value", action)),
                actor_id=actor.id,
                actor_type=actor.type,
                actor_email=actor.email,
                actor_name=actor.name,
                subject_type=subject_type,
                subject_id=subject_id,
                mosque_id=mosque_id,
                before_data=before,
                after_data=after,
                reason=reason,
                details=details,
                ip_address=actor.ip_address,
            )
            await session.commit()
            return entry.id
    except Exception as e:
        logger.error(
            f"AUDIT_FAILURE: could not record {action} for {subject_type} {subject_id}: {e}",
            exc_info=True,
        )
        return None
