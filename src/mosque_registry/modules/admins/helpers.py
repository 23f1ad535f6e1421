"""
Admin Helpers

Snapshot builders for audit entries. Verification codes are replaced by
their fingerprint so the audit log never stores a usable code.
"""

from typing import Any

from mosque_registry.modules.admins.models import Admin
from mosque_registry.modules.mosques.codes import code_fingerprint
from mosque_registry.modules.mosques.models import Mosque


def _str_or_none(value: Any) -> str | None:
    return str(value) if value is not None else None


def snapshot_admin(admin: Admin) -> dict[str, Any]:
    detail = dict(admin.status_detail or {})
    if "verification_code_used" in detail:
        detail["verification_code_used"] = code_fingerprint(detail["verification_code_used"])

    return {
        "id": str(admin.id),
        "name": admin.name,
        "email": admin.email,
        "status": admin.status.value,
        "mosque_id": _str_or_none(admin.mosque_id),
        "code_regenerated_mosque_id": _str_or_none(admin.code_regenerated_mosque_id),
        "rejection_count": admin.rejection_count,
        "can_reapply": admin.can_reapply,
        "status_detail": detail,
    }


def snapshot_mosque(mosque: Mosque) -> dict[str, Any]:
    return {
        "id": str(mosque.id),
        "name": mosque.name,
        "location": mosque.location,
        "verification_code": code_fingerprint(mosque.verification_code),
        "verification_code_expires": mosque.verification_code_expires.isoformat(),
    }
