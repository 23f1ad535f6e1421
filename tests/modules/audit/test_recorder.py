"""
Tests for the audit recorder.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from mosque_registry.modules.admins.lifecycle import TransitionKind
from mosque_registry.modules.audit import recorder
from mosque_registry.modules.audit.recorder import SYSTEM_ACTOR, Actor

RECORDER = "mosque_registry.modules.audit.recorder"


@pytest.fixture
def session():
    session = AsyncMock()
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=session)
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch(f"{RECORDER}.async_session_maker", maker):
        yield session


@pytest.mark.asyncio
async def test_records_entry_in_own_session(session):
    entry_id = uuid4()
    actor = Actor(id=uuid4(), type="super_admin", email="root@registry.test", name="Root")
    subject_id = uuid4()

    with patch(f"{RECORDER}.repository") as repository:
        repository.create = AsyncMock(return_value=SimpleNamespace(id=entry_id))

        result = await recorder.record(
            TransitionKind.APPROVE,
            actor,
            subject_type="admin",
            subject_id=subject_id,
            reason="Documents verified",
        )

    assert result == entry_id
    fields = repository.create.await_args.kwargs
    assert fields["action"] == "admin_approved"
    assert fields["actor_type"] == "super_admin"
    assert fields["actor_email"] == "root@registry.test"
    assert fields["subject_id"] == subject_id
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_plain_string_action(session):
    with patch(f"{RECORDER}.repository") as repository:
        repository.create = AsyncMock(return_value=SimpleNamespace(id=uuid4()))

        await recorder.record(
            "custom_action", SYSTEM_ACTOR, subject_type="mosque", subject_id=uuid4()
        )

    fields = repository.create.await_args.kwargs
    assert fields["action"] == "custom_action"
    assert fields["actor_id"] is None
    assert fields["actor_type"] == "system"


@pytest.mark.asyncio
async def test_write_failure_is_logged_not_raised(session, caplog):
    session.commit.side_effect = RuntimeError("database is gone")

    with patch(f"{RECORDER}.repository") as repository:
        repository.create = AsyncMock(return_value=SimpleNamespace(id=uuid4()))

        result = await recorder.record(
            TransitionKind.REJECT, SYSTEM_ACTOR, subject_type="admin", subject_id=uuid4()
        )

    assert result is None
    assert "AUDIT_FAILURE" in caplog.text


@pytest.mark.asyncio
async def test_ip_address_comes_from_actor(session):
    actor = Actor(id=uuid4(), type="admin", email="imam@example.test", ip_address="203.0.113.7")

    with patch(f"{RECORDER}.repository") as repository:
        repository.create = AsyncMock(return_value=SimpleNamespace(id=uuid4()))

        await recorder.record(TransitionKind.APPLY, actor, subject_type="admin", subject_id=uuid4())

    assert repository.create.await_args.kwargs["ip_address"] == "203.0.113.7"
