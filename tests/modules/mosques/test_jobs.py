"""
Tests for the mosque background jobs and their registration.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mosque_registry.core import scheduler
from mosque_registry.modules.mosques import jobs
from mosque_registry.modules.mosques.service import BulkRegenerationResult
from tests.modules.admins.factories import NOW, make_mosque

JOBS = "mosque_registry.modules.mosques.jobs"
SERVICE = "mosque_registry.modules.mosques.service"
REPOSITORY = "mosque_registry.modules.mosques.repository.MosqueRepository"


@pytest.fixture
def session_maker():
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=AsyncMock())
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch(f"{JOBS}.async_session_maker", maker):
        yield maker


@pytest.fixture
def clean_registry():
    with patch.dict(scheduler._job_registry, clear=True):
        yield scheduler._job_registry


def test_jobs_are_registered(clean_registry):
    jobs.register_mosque_jobs()

    assert set(clean_registry) == {jobs.JOB_ID_REGENERATE_EXPIRED, jobs.JOB_ID_WARN_EXPIRING}
    registered = [job["job_id"] for job in scheduler.list_registered_jobs()]
    assert jobs.JOB_ID_REGENERATE_EXPIRED in registered


@pytest.mark.asyncio
async def test_manual_trigger_runs_bulk_regeneration(clean_registry, session_maker):
    mosque = make_mosque()
    result = BulkRegenerationResult(executed_at=NOW, regenerated=[(mosque, None)])
    jobs.register_mosque_jobs()

    with patch(f"{SERVICE}.regenerate_expired_codes", AsyncMock(return_value=result)):
        outcome = await scheduler.trigger_job_manually(jobs.JOB_ID_REGENERATE_EXPIRED)

    assert outcome["status"] == "success"
    assert outcome["result"]["regenerated"] == [str(mosque.id)]


@pytest.mark.asyncio
async def test_manual_trigger_reports_failure(clean_registry, session_maker):
    jobs.register_mosque_jobs()
    failing = AsyncMock(side_effect=RuntimeError("database unavailable"))

    with patch(f"{SERVICE}.regenerate_expired_codes", failing):
        outcome = await scheduler.trigger_job_manually(jobs.JOB_ID_REGENERATE_EXPIRED)

    assert outcome["status"] == "error"
    assert "database unavailable" in outcome["error"]


@pytest.mark.asyncio
async def test_unknown_job():
    with pytest.raises(ValueError):
        await scheduler.trigger_job_manually("no_such_job")


@pytest.mark.asyncio
async def test_warn_expiring_lists_mosques(session_maker):
    soon = make_mosque(verification_code_expires=NOW + timedelta(days=3))

    get_expiring = AsyncMock(return_value=[soon])
    with patch(f"{REPOSITORY}.get_expiring", get_expiring):
        outcome = await jobs.warn_expiring_codes_job()

    assert outcome == {"expiring": [str(soon.id)]}
