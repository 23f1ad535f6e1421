"""
Concurrent applications and reapplications for one mosque.

An in-memory store stands in for the database. It keeps the committed
holder of each mosque separately from the shared admin objects, its commit
enforces the single active admin per mosque the way the partial unique
index does, and a rollback restores the admins a session loaded for update.
Every await yields so concurrent requests interleave.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from mosque_registry.modules.admins import lifecycle, service
from mosque_registry.modules.admins.errors import FacilityAlreadyStaffedError, WrongCodeError
from mosque_registry.modules.admins.lifecycle import LifecyclePolicy
from mosque_registry.modules.admins.models import ACTIVE_SLOT_INDEX, ACTIVE_STATUSES, AdminStatus
from tests.modules.admins.factories import (
    NOW,
    REAPPLY_REASON,
    VALID_CODE,
    VALID_REASON,
    make_mosque,
    make_pending_admin,
)

TRACKED_COLUMNS = (
    "status",
    "status_detail",
    "mosque_id",
    "verification_code_used",
    "code_regenerated_mosque_id",
    "can_reapply",
    "application_notes",
    "rejection_count",
    "rejection_history",
)


class InMemoryStore:
    def __init__(self, *mosques):
        self.mosques = {mosque.id: mosque for mosque in mosques}
        self.admins = {}
        # mosque id -> id of the admin holding it, as committed
        self.slots = {}

    def holder_of(self, mosque_id):
        return self.admins.get(self.slots.get(mosque_id))

    def save(self, admin):
        self.admins[admin.id] = admin
        self.slots = {m: a for m, a in self.slots.items() if a != admin.id}
        if admin.status in ACTIVE_STATUSES:
            self.slots[admin.mosque_id] = admin.id

    def admin_repository(self):
        async def get_by_id(db, admin_id, *, for_update=False):
            await asyncio.sleep(0)
            admin = self.admins.get(admin_id)
            if admin is not None and for_update:
                db.track(admin)
            return admin

        async def get_by_email(db, email):
            await asyncio.sleep(0)
            return next((a for a in self.admins.values() if a.email == email.lower()), None)

        async def get_by_phone(db, phone):
            await asyncio.sleep(0)
            return next((a for a in self.admins.values() if a.phone == phone), None)

        async def get_holder(db, mosque_id, *, for_update=False):
            await asyncio.sleep(0)
            return self.holder_of(mosque_id)

        async def get_bound_to_mosque(db, mosque_id, *, for_update=False):
            holder = self.holder_of(mosque_id)
            return [holder] if holder is not None else []

        return SimpleNamespace(
            get_by_id=get_by_id,
            get_by_email=get_by_email,
            get_by_phone=get_by_phone,
            get_holder=get_holder,
            get_bound_to_mosque=get_bound_to_mosque,
        )

    def mosque_repository(self):
        async def get_by_id(db, mosque_id, *, for_update=False):
            await asyncio.sleep(0)
            return self.mosques.get(mosque_id)

        return SimpleNamespace(get_by_id=get_by_id)


class InMemorySession:
    """Unit of work over InMemoryStore; commit applies the active-slot rule."""

    def __init__(self, store):
        self.store = store
        self.added = []
        self.snapshots = {}

    def add(self, obj):
        self.added.append(obj)

    def track(self, admin):
        self.snapshots.setdefault(
            admin.id, (admin, {column: getattr(admin, column) for column in TRACKED_COLUMNS})
        )

    async def flush(self):
        await asyncio.sleep(0)

    async def delete(self, obj):
        self.store.mosques.pop(obj.id, None)

    async def commit(self):
        await asyncio.sleep(0)
        changed = [*self.added, *(admin for admin, _ in self.snapshots.values())]
        for admin in changed:
            holder = self.store.slots.get(admin.mosque_id)
            if admin.status in ACTIVE_STATUSES and holder not in (None, admin.id):
                await self.rollback()
                message = f'duplicate key value violates unique constraint "{ACTIVE_SLOT_INDEX}"'
                raise IntegrityError("UPDATE admins", {}, Exception(message))
        for admin in changed:
            self.store.save(admin)
        self.added.clear()
        self.snapshots.clear()

    async def rollback(self):
        for admin, values in self.snapshots.values():
            for column, value in values.items():
                setattr(admin, column, value)
        self.added.clear()
        self.snapshots.clear()


@pytest.fixture
def store(side_effects):
    store = InMemoryStore(make_mosque())
    admin_repo = store.admin_repository()
    with (
        patch("mosque_registry.modules.admins.transaction.admin_repository", admin_repo),
        patch("mosque_registry.modules.admins.service.admin_repository", admin_repo),
        patch(
            "mosque_registry.modules.admins.transaction.MosqueRepository",
            store.mosque_repository(),
        ),
    ):
        yield store


def _apply(store, mosque, index):
    return service.apply_for_mosque(
        InMemorySession(store),
        name=f"Applicant {index}",
        email=f"applicant{index}@example.test",
        phone=f"+2327700000{index}",
        password="a-long-password",
        mosque_id=mosque.id,
        verification_code=VALID_CODE,
    )


@pytest.mark.asyncio
async def test_concurrent_applications_admit_exactly_one(store, side_effects):
    mosque = next(iter(store.mosques.values()))

    results = await asyncio.gather(_apply(store, mosque, 1), _apply(store, mosque, 2))

    winners = [r for r in results if r.ok]
    losers = [r for r in results if not r.ok]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0].error, FacilityAlreadyStaffedError)
    assert losers[0].error.context["code_rotated"] is True

    holders = [a for a in store.admins.values() if a.mosque_id == mosque.id]
    assert holders == [winners[0].admin]
    assert holders[0].status == AdminStatus.PENDING
    assert mosque.verification_code != VALID_CODE


@pytest.mark.asyncio
async def test_many_concurrent_applications(store, side_effects):
    mosque = next(iter(store.mosques.values()))

    results = await asyncio.gather(*(_apply(store, mosque, i) for i in range(5)))

    assert sum(1 for r in results if r.ok) == 1
    # Late losers may already see the code rotated by an earlier breach
    assert all(
        isinstance(r.error, (FacilityAlreadyStaffedError, WrongCodeError))
        for r in results
        if not r.ok
    )
    assert store.holder_of(mosque.id) is not None


def _rejected_admin(store, index):
    """A stored admin rejected elsewhere and allowed to reapply."""
    elsewhere = make_mosque(name=f"Masjid {index}")
    admin = make_pending_admin(elsewhere, email=f"reapplicant{index}@example.test")
    lifecycle.reject(
        admin,
        elsewhere,
        reason=VALID_REASON,
        rejected_by=None,
        allow_reapply=True,
        now=NOW,
        policy=LifecyclePolicy(),
    )
    store.save(admin)
    return admin


def _reapply(store, mosque, admin):
    return service.reapply(
        InMemorySession(store),
        admin_id=admin.id,
        mosque_id=mosque.id,
        verification_code=VALID_CODE,
        reason=REAPPLY_REASON,
    )


@pytest.mark.asyncio
async def test_concurrent_reapplications_admit_exactly_one(store, side_effects):
    mosque = next(iter(store.mosques.values()))
    first, second = _rejected_admin(store, 1), _rejected_admin(store, 2)

    results = await asyncio.gather(_reapply(store, mosque, first), _reapply(store, mosque, second))

    winners = [r for r in results if r.ok]
    losers = [r for r in results if not r.ok]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0].error, FacilityAlreadyStaffedError)
    assert losers[0].error.context["code_rotated"] is True

    winner = winners[0].admin
    loser = second if winner is first else first
    assert store.holder_of(mosque.id) is winner
    assert winner.status == AdminStatus.PENDING
    assert winner.can_reapply is False
    assert loser.status == AdminStatus.REJECTED
    assert loser.mosque_id is None
    assert loser.can_reapply is True
    assert mosque.verification_code != VALID_CODE
