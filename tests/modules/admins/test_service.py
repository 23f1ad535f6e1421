"""
Tests for the admin lifecycle service.

Repositories are patched (see conftest.py); the session is an AsyncMock so
commit, rollback and their failures can be asserted.
"""

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from mosque_registry.modules.admins import lifecycle, service
from mosque_registry.modules.admins.errors import (
    AccountAlreadyExistsError,
    ConflictLostError,
    ErrorKind,
    ExpiredCodeError,
    FacilityAlreadyStaffedError,
    MosqueNotFoundError,
    ReapplicationNotPermittedError,
    ReasonTooShortError,
    StorageUnavailableError,
    WrongCodeError,
    WrongStatusForTransitionError,
)
from mosque_registry.modules.admins.models import ACTIVE_SLOT_INDEX, AdminStatus
from mosque_registry.modules.mosques.codes import code_fingerprint
from tests.modules.admins.factories import (
    NOW,
    REAPPLY_REASON,
    VALID_CODE,
    VALID_REASON,
    make_mosque,
    make_pending_admin,
    recorded_actions,
)


def _slot_violation() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO admins",
        {},
        Exception(f'duplicate key value violates unique constraint "{ACTIVE_SLOT_INDEX}"'),
    )


async def _apply(db, mosque, code=VALID_CODE, email="aminata@example.test"):
    return await service.apply_for_mosque(
        db,
        name="Aminata Sesay",
        email=email,
        phone="+23277000001",
        password="a-long-password",
        mosque_id=mosque.id,
        verification_code=code,
    )


# ============================================
# Apply
# ============================================


@pytest.mark.asyncio
async def test_apply_with_valid_code_creates_pending_admin(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque

    result = await _apply(mock_db, mosque, email="Aminata@Example.test")

    assert result.ok
    admin = result.admin
    assert admin.status == AdminStatus.PENDING
    assert admin.mosque_id == mosque.id
    assert admin.email == "aminata@example.test"
    assert admin.password_hash == "hashed"
    assert mosque.verification_code == VALID_CODE

    mock_db.add.assert_called_once_with(admin)
    mock_db.commit.assert_awaited_once()
    repos.admins.get_holder.assert_awaited_once_with(mock_db, mosque.id, for_update=True)
    assert recorded_actions(side_effects.audit) == ["admin_applied"]
    side_effects.notifier.send_application_received.assert_awaited_once_with(
        admin.email, admin.name, mosque.name
    )


@pytest.mark.asyncio
async def test_apply_audit_carries_caller_address(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque

    result = await service.apply_for_mosque(
        mock_db,
        name="Aminata Sesay",
        email="aminata@example.test",
        phone="+23277000001",
        password="a-long-password",
        mosque_id=mosque.id,
        verification_code=VALID_CODE,
        ip_address="198.51.100.23",
    )

    assert result.ok
    actor = side_effects.audit.record.await_args.args[1]
    assert actor.id == result.admin.id
    assert actor.type == "admin"
    assert actor.ip_address == "198.51.100.23"


@pytest.mark.asyncio
async def test_apply_to_staffed_mosque_rotates_code(
    mock_db, repos, side_effects, mosque, approved_admin
):
    repos.mosques.get_by_id.return_value = mosque
    repos.admins.get_holder.return_value = approved_admin

    result = await _apply(mock_db, mosque)

    assert not result.ok
    assert isinstance(result.error, FacilityAlreadyStaffedError)
    assert result.error.context["code_rotated"] is True
    assert result.error.status_code == 409
    assert mosque.verification_code != VALID_CODE
    assert approved_admin.status == AdminStatus.APPROVED

    mock_db.add.assert_not_called()
    mock_db.commit.assert_awaited_once()
    assert recorded_actions(side_effects.audit) == ["breach_detected"]
    side_effects.notifier.send_mosque_code.assert_awaited_once()
    assert (
        side_effects.notifier.send_mosque_code.await_args.kwargs["to_email"]
        == mosque.contact_email
    )


@pytest.mark.asyncio
async def test_apply_losing_slot_race_at_commit_is_staffed(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque
    mock_db.commit.side_effect = [_slot_violation(), None]

    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, FacilityAlreadyStaffedError)
    assert result.error.context["code_rotated"] is True
    assert mosque.verification_code != VALID_CODE
    mock_db.rollback.assert_awaited()
    assert recorded_actions(side_effects.audit) == ["breach_detected"]


@pytest.mark.asyncio
async def test_breach_rotation_failure_is_reported(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque
    mock_db.commit.side_effect = [_slot_violation(), OperationalError("UPDATE", {}, Exception())]

    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, FacilityAlreadyStaffedError)
    assert result.error.context["code_rotated"] is False
    side_effects.audit.record.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_with_expired_code_does_not_rotate(mock_db, repos, side_effects):
    mosque = make_mosque(verification_code_expires=NOW)
    repos.mosques.get_by_id.return_value = mosque

    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, ExpiredCodeError)
    assert result.error_kind == ErrorKind.INVALID_CODE
    assert mosque.verification_code == VALID_CODE
    mock_db.add.assert_not_called()
    mock_db.commit.assert_not_awaited()
    side_effects.audit.record.assert_not_awaited()
    side_effects.notifier.send_mosque_code.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_with_wrong_code(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque

    result = await _apply(mock_db, mosque, code="WRONGCODE234")

    assert isinstance(result.error, WrongCodeError)
    assert mosque.verification_code == VALID_CODE
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_with_taken_email(mock_db, repos, side_effects, mosque, approved_admin):
    repos.admins.get_by_email.return_value = approved_admin

    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, AccountAlreadyExistsError)
    assert result.error.context == {"field": "email"}
    repos.mosques.get_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_to_unknown_mosque(mock_db, repos, side_effects, mosque):
    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, MosqueNotFoundError)
    assert result.error_kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_apply_when_storage_is_down(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.side_effect = OperationalError(
        "SELECT", {}, Exception("connection refused")
    )

    result = await _apply(mock_db, mosque)

    assert isinstance(result.error, StorageUnavailableError)
    assert result.error.status_code == 503
    mock_db.rollback.assert_awaited()


# ============================================
# Approve / Reject / Remove
# ============================================


@pytest.mark.asyncio
async def test_approve_pending_admin(mock_db, repos, side_effects, mosque, pending_admin, actor):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.approve_admin(mock_db, pending_admin.id, actor)

    assert result.ok
    assert pending_admin.status == AdminStatus.APPROVED
    assert pending_admin.state.approved_by == actor.id
    assert pending_admin.state.notes == service.DEFAULT_APPROVAL_NOTES
    assert mosque.verification_code == VALID_CODE
    assert recorded_actions(side_effects.audit) == ["admin_approved"]


@pytest.mark.asyncio
async def test_approve_losing_version_race(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque
    mock_db.commit.side_effect = StaleDataError("admins row version mismatch")

    result = await service.approve_admin(mock_db, pending_admin.id, actor)

    assert isinstance(result.error, ConflictLostError)
    assert result.error_kind == ErrorKind.CONFLICT_LOST
    side_effects.audit.record.assert_not_awaited()


@pytest.mark.asyncio
async def test_serialization_failure_is_conflict(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque
    orig = Exception("could not serialize access")
    orig.sqlstate = "40001"
    mock_db.commit.side_effect = DBAPIError("UPDATE admins", {}, orig)

    result = await service.approve_admin(mock_db, pending_admin.id, actor)

    assert isinstance(result.error, ConflictLostError)


@pytest.mark.asyncio
async def test_approve_survives_notification_failure(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque
    side_effects.notifier.send_admin_status_update.side_effect = RuntimeError("smtp down")
    side_effects.audit.record.return_value = None

    result = await service.approve_admin(mock_db, pending_admin.id, actor)

    assert result.ok
    assert pending_admin.status == AdminStatus.APPROVED


@pytest.mark.asyncio
async def test_reject_with_short_reason(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.reject_admin(mock_db, pending_admin.id, actor, reason="short")

    assert isinstance(result.error, ReasonTooShortError)
    assert result.error.error_code == "INVALID_REASON_LENGTH"
    assert pending_admin.status == AdminStatus.PENDING
    assert pending_admin.rejection_count == 0
    assert mosque.verification_code == VALID_CODE
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_reject_rotates_code_and_audits_fingerprints(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.reject_admin(mock_db, pending_admin.id, actor, reason=VALID_REASON)

    assert result.ok
    assert pending_admin.status == AdminStatus.REJECTED
    assert result.issued_code.code == mosque.verification_code != VALID_CODE

    audit_call = side_effects.audit.record.await_args
    assert audit_call.args[0] == lifecycle.TransitionKind.REJECT
    assert audit_call.kwargs["details"]["previous_code"] == code_fingerprint(VALID_CODE)
    assert audit_call.kwargs["details"]["new_code"] == code_fingerprint(result.issued_code.code)
    assert VALID_CODE not in str(audit_call)
    assert result.issued_code.code not in str(audit_call)

    side_effects.notifier.send_mosque_code.assert_awaited_once()


@pytest.mark.asyncio
async def test_reject_twice_fails_on_status(
    mock_db, repos, side_effects, mosque, pending_admin, actor
):
    repos.admins.get_by_id.return_value = pending_admin
    repos.mosques.get_by_id.return_value = mosque

    first = await service.reject_admin(mock_db, pending_admin.id, actor, reason=VALID_REASON)
    rotated = mosque.verification_code
    second = await service.reject_admin(mock_db, pending_admin.id, actor, reason=VALID_REASON)

    assert first.ok
    assert isinstance(second.error, WrongStatusForTransitionError)
    assert second.error.context["current_status"] == "rejected"
    assert pending_admin.rejection_count == 1
    assert mosque.verification_code == rotated


@pytest.mark.asyncio
async def test_remove_approved_admin(mock_db, repos, side_effects, mosque, approved_admin, actor):
    repos.admins.get_by_id.return_value = approved_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.remove_admin(mock_db, approved_admin.id, actor, reason=VALID_REASON)

    assert result.ok
    assert approved_admin.status == AdminStatus.ADMIN_REMOVED
    assert approved_admin.can_reapply is True
    assert mosque.verification_code != VALID_CODE


@pytest.mark.asyncio
async def test_unknown_admin(mock_db, repos, side_effects, actor):
    result = await service.approve_admin(mock_db, uuid4(), actor)

    assert result.error.error_code == "ADMIN_NOT_FOUND"


# ============================================
# Allow reapplication / Reapply
# ============================================


@pytest.mark.asyncio
async def test_allow_reapplication_refused_at_limit(mock_db, repos, side_effects, mosque, actor):
    admin = make_pending_admin(mosque)
    admin.rejection_count = 2
    lifecycle.reject(
        admin,
        mosque,
        reason=VALID_REASON,
        rejected_by=None,
        allow_reapply=False,
        now=NOW,
        policy=lifecycle.LifecyclePolicy(),
    )
    repos.admins.get_by_id.return_value = admin

    result = await service.allow_reapplication(mock_db, admin.id, actor)

    assert isinstance(result.error, ReapplicationNotPermittedError)
    assert result.error.status_code == 403
    assert admin.can_reapply is False


@pytest.mark.asyncio
async def test_reapply_to_staffed_mosque_rotates_code(
    mock_db, repos, side_effects, mosque, approved_admin
):
    other = make_mosque(verification_code="QRST2345WXYZ")
    admin = make_pending_admin(other)
    lifecycle.reject(
        admin,
        other,
        reason=VALID_REASON,
        rejected_by=None,
        allow_reapply=True,
        now=NOW,
        policy=lifecycle.LifecyclePolicy(),
    )
    repos.admins.get_by_id.return_value = admin
    repos.admins.get_holder.return_value = approved_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.reapply(
        mock_db,
        admin_id=admin.id,
        mosque_id=mosque.id,
        verification_code=VALID_CODE,
        reason=REAPPLY_REASON,
    )

    assert isinstance(result.error, FacilityAlreadyStaffedError)
    assert result.error.context["code_rotated"] is True
    assert admin.status == AdminStatus.REJECTED
    assert mosque.verification_code != VALID_CODE


@pytest.mark.asyncio
async def test_reapply_after_rejection(mock_db, repos, side_effects, mosque):
    admin = make_pending_admin(mosque)
    lifecycle.reject(
        admin,
        mosque,
        reason=VALID_REASON,
        rejected_by=None,
        allow_reapply=True,
        now=NOW,
        policy=lifecycle.LifecyclePolicy(),
    )
    repos.admins.get_by_id.return_value = admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.reapply(
        mock_db,
        admin_id=admin.id,
        mosque_id=mosque.id,
        verification_code=mosque.verification_code,
        reason=REAPPLY_REASON,
    )

    assert result.ok
    assert admin.status == AdminStatus.PENDING
    assert admin.can_reapply is False
    assert recorded_actions(side_effects.audit) == ["admin_reapplied"]
    details = side_effects.audit.record.await_args.kwargs["details"]
    assert details["previously_rejected_here"] is True


# ============================================
# Mosque-wide transitions
# ============================================


@pytest.mark.asyncio
async def test_delete_mosque_cascades_to_bound_admins(
    mock_db, repos, side_effects, mosque, pending_admin, approved_admin, actor
):
    repos.mosques.get_by_id.return_value = mosque
    repos.admins.get_bound_to_mosque.return_value = [pending_admin, approved_admin]

    result = await service.delete_mosque(mock_db, mosque.id, actor, reason="Mosque closed")

    assert result.ok
    assert result.affected_admins == [pending_admin, approved_admin]
    for admin in (pending_admin, approved_admin):
        assert admin.status == AdminStatus.MOSQUE_DELETED
        assert admin.state.mosque.name == mosque.name
        assert admin.can_reapply is True
        assert admin.mosque_id is None

    mock_db.delete.assert_awaited_once_with(mosque)
    assert recorded_actions(side_effects.audit) == ["mosque_deleted"] * 3
    assert side_effects.notifier.send_admin_status_update.await_count == 2


@pytest.mark.asyncio
async def test_regenerate_code_suspends_approved_admin(
    mock_db, repos, side_effects, mosque, approved_admin, actor
):
    repos.mosques.get_by_id.return_value = mosque
    repos.admins.get_bound_to_mosque.return_value = [approved_admin]

    result = await service.regenerate_mosque_code(mock_db, mosque.id, actor, expiry_days=10)

    assert result.ok
    assert result.affected_admins == [approved_admin]
    assert approved_admin.status == AdminStatus.CODE_REGENERATED
    assert mosque.verification_code == result.issued_code.code != VALID_CODE
    assert result.issued_code.expires_at > NOW

    side_effects.notifier.send_mosque_code.assert_awaited_once()
    assert side_effects.notifier.send_mosque_code.await_args.args[0] == mosque.contact_email


@pytest.mark.asyncio
async def test_revalidate_with_new_code(
    mock_db, repos, side_effects, mosque, approved_admin
):
    issued, _ = lifecycle.regenerate(
        mosque, [approved_admin], reason="Rotation", regenerated_by=None, now=NOW
    )
    repos.admins.get_by_id.return_value = approved_admin
    repos.mosques.get_by_id.return_value = mosque

    wrong = await service.revalidate_code(mock_db, approved_admin.id, VALID_CODE)
    assert isinstance(wrong.error, WrongCodeError)
    assert approved_admin.status == AdminStatus.CODE_REGENERATED
    assert mosque.verification_code == issued.code

    result = await service.revalidate_code(mock_db, approved_admin.id, issued.code)

    assert result.ok
    assert approved_admin.status == AdminStatus.APPROVED
    assert approved_admin.verification_code_used == issued.code
    repos.mosques.get_by_id.assert_awaited_with(mock_db, mosque.id, for_update=True)


@pytest.mark.asyncio
async def test_revalidate_with_expired_code(mock_db, repos, side_effects, mosque, approved_admin):
    issued, _ = lifecycle.regenerate(
        mosque,
        [approved_admin],
        reason="Rotation",
        regenerated_by=None,
        now=NOW - timedelta(days=2),
        expiry_days=1,
    )
    repos.admins.get_by_id.return_value = approved_admin
    repos.mosques.get_by_id.return_value = mosque

    result = await service.revalidate_code(mock_db, approved_admin.id, issued.code)

    assert isinstance(result.error, ExpiredCodeError)
    assert result.error_kind == ErrorKind.INVALID_CODE
    assert approved_admin.status == AdminStatus.CODE_REGENERATED
    assert approved_admin.code_regenerated_mosque_id == mosque.id
    assert mosque.verification_code == issued.code
    mock_db.commit.assert_not_awaited()
    side_effects.audit.record.assert_not_awaited()


@pytest.mark.asyncio
async def test_revalidate_when_mosque_is_gone(mock_db, repos, side_effects, mosque, approved_admin):
    lifecycle.regenerate(mosque, [approved_admin], reason="Rotation", regenerated_by=None, now=NOW)
    repos.admins.get_by_id.return_value = approved_admin

    result = await service.revalidate_code(mock_db, approved_admin.id, "ANYCODE23456")

    assert isinstance(result.error, MosqueNotFoundError)


@pytest.mark.asyncio
async def test_rollback_failure_does_not_mask_error(mock_db, repos, side_effects, mosque):
    repos.mosques.get_by_id.return_value = mosque
    mock_db.rollback = AsyncMock(side_effect=OperationalError("ROLLBACK", {}, Exception()))

    result = await _apply(mock_db, mosque, code="WRONGCODE234")

    assert isinstance(result.error, WrongCodeError)
