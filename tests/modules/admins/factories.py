"""
Factories for admin lifecycle tests.

Mosques and admins are real ORM instances that are never attached to a
session.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from mosque_registry.modules.admins import lifecycle
from mosque_registry.modules.admins.models import Admin
from mosque_registry.modules.mosques.models import Mosque

# Services read the real clock
NOW = datetime.now(UTC).replace(microsecond=0)
VALID_CODE = "ABCD2345EFGH"
VALID_REASON = "Documents could not be verified."
REAPPLY_REASON = (
    "I have gathered the documents requested by the committee and can now "
    "provide proof of my role at the mosque."
)


def make_mosque(**overrides) -> Mosque:
    values = {
        "id": uuid4(),
        "name": "Masjid Al-Noor",
        "location": "12 Market Street, Freetown",
        "description": None,
        "contact_phone": "+23276000000",
        "contact_email": "contact@alnoor.test",
        "admin_instructions": None,
        "verification_code": VALID_CODE,
        "verification_code_expires": NOW + timedelta(days=30),
        "version_id": 1,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Mosque(**values)


def make_pending_admin(mosque: Mosque, **overrides) -> Admin:
    suffix = uuid4().hex[:8]
    admin = lifecycle.new_applicant(
        name=overrides.pop("name", "Ibrahim Kamara"),
        email=overrides.pop("email", f"ibrahim.{suffix}@example.test"),
        phone=overrides.pop("phone", f"+232{int(suffix, 16) % 10**8:08d}"),
        password_hash="hashed-password",
        application_notes=None,
        mosque=mosque,
        now=NOW,
    )
    admin.version_id = 1
    admin.created_at = NOW
    admin.updated_at = NOW
    for key, value in overrides.items():
        setattr(admin, key, value)
    return admin


def make_approved_admin(mosque: Mosque, **overrides) -> Admin:
    admin = make_pending_admin(mosque, **overrides)
    lifecycle.approve(admin, approved_by=uuid4(), notes="Approved", now=NOW)
    return admin


def recorded_actions(audit) -> list[str]:
    """Audit actions passed to a patched recorder, in call order."""
    return [str(getattr(c.args[0], "value", c.args[0])) for c in audit.record.await_args_list]
