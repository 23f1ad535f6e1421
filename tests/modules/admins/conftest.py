"""
Fixtures for admin lifecycle tests.

Repositories, the audit recorder and the notifier are patched; see
factories.py for the model builders.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from mosque_registry.modules.admins.lifecycle import LifecyclePolicy
from mosque_registry.modules.audit.recorder import Actor
from tests.modules.admins.factories import make_approved_admin, make_mosque, make_pending_admin


@pytest.fixture
def policy():
    return LifecyclePolicy()


@pytest.fixture
def mosque():
    return make_mosque()


@pytest.fixture
def pending_admin(mosque):
    return make_pending_admin(mosque)


@pytest.fixture
def approved_admin(mosque):
    return make_approved_admin(mosque)


@pytest.fixture
def actor():
    return Actor(id=uuid4(), type="super_admin", email="root@registry.test", name="Root")


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.rollback = AsyncMock()
    db.delete = AsyncMock()
    return db


@pytest.fixture
def repos():
    """Patch the admin and mosque repositories used by the lifecycle service."""
    admin_repo = MagicMock()
    admin_repo.get_by_id = AsyncMock(return_value=None)
    admin_repo.get_by_email = AsyncMock(return_value=None)
    admin_repo.get_by_phone = AsyncMock(return_value=None)
    admin_repo.get_holder = AsyncMock(return_value=None)
    admin_repo.get_bound_to_mosque = AsyncMock(return_value=[])

    mosque_repo = MagicMock()
    mosque_repo.get_by_id = AsyncMock(return_value=None)

    with (
        patch("mosque_registry.modules.admins.transaction.admin_repository", admin_repo),
        patch("mosque_registry.modules.admins.service.admin_repository", admin_repo),
        patch("mosque_registry.modules.admins.transaction.MosqueRepository", mosque_repo),
    ):
        yield SimpleNamespace(admins=admin_repo, mosques=mosque_repo)


@pytest.fixture
def side_effects():
    """Patch audit recording, email and password hashing."""
    notifier = MagicMock()
    notifier.send_mosque_code = AsyncMock(return_value=True)
    notifier.send_application_received = AsyncMock(return_value=True)
    notifier.send_admin_status_update = AsyncMock(return_value=True)

    audit = MagicMock()
    audit.record = AsyncMock(return_value=uuid4())

    with (
        patch("mosque_registry.modules.admins.service.notifier", notifier),
        patch("mosque_registry.modules.admins.service.audit_recorder", audit),
        patch("mosque_registry.modules.admins.service.hash_password", return_value="hashed"),
    ):
        yield SimpleNamespace(notifier=notifier, audit=audit)
