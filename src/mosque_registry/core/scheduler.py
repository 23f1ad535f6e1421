"""
Background Job Scheduler

Provides scheduled task execution using APScheduler with AsyncIO support.
Handles job registration, execution, and graceful shutdown.

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Jobs open their own database sessions
- Failed jobs are logged but don't crash the scheduler
- Jobs can be triggered manually for testing

Usage:
    from mosque_registry.core.scheduler import register_job, start_scheduler, stop_scheduler

    register_job("my_job", my_job, IntervalTrigger(hours=1))

    # In FastAPI lifespan:
    async def lifespan(app):
        await start_scheduler()
        yield
        await stop_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]


@dataclass
class RegisteredJob:
    func: JobFunc
    trigger: BaseTrigger


# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None

# Job registry; jobs registered before start are added when the scheduler starts
_job_registry: dict[str, RegisteredJob] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_COALESCE = True  # Combine multiple missed executions into one
    JOB_MAX_INSTANCES = 1  # Only one instance of each job can run at a time
    JOB_MISFIRE_GRACE_TIME = 60 * 5  # 5 minutes grace time for missed jobs

    JOB_DEFAULTS = {
        "coalesce": JOB_COALESCE,
        "max_instances": JOB_MAX_INSTANCES,
        "misfire_grace_time": JOB_MISFIRE_GRACE_TIME,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now(UTC).isoformat()}")


def get_scheduler() -> AsyncIOScheduler | None:
    return _scheduler


def _schedule(job_id: str, job: RegisteredJob) -> None:
    _scheduler.add_job(job.func, trigger=job.trigger, id=job_id, replace_existing=True)
    logger.info(f"Scheduled job: {job_id}")


async def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the background scheduler, adding every registered job.

    Returns:
        The started scheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job_id, job in _job_registry.items():
        _schedule(job_id, job)

    _scheduler.start()

    logger.info(f"Background job scheduler started with {len(_job_registry)} job(s)")
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler, waiting for running jobs to complete."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    logger.info("Stopping background job scheduler...")
    _scheduler.shutdown(wait=True)
    logger.info("Background job scheduler stopped")
    _scheduler = None


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register a job.

    Before the scheduler starts, the job is only recorded; start_scheduler
    adds it. After start, it is scheduled immediately.

    Example:
        register_job(
            job_id="mosques_regenerate_expired_codes",
            func=regenerate_expired_codes_job,
            trigger=IntervalTrigger(hours=1),
        )
    """
    job = RegisteredJob(func=func, trigger=trigger)
    _job_registry[job_id] = job

    if _scheduler is not None:
        _schedule(job_id, job)


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job now, bypassing the scheduler.

    Returns:
        Dict with job_id, status ("success" or "error"), executed_at and
        the job's return value or error message

    Raises:
        ValueError: If job_id is not found in the registry
    """
    if job_id not in _job_registry:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry.keys())}"
        )

    executed_at = datetime.now(UTC)
    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await _job_registry[job_id].func()
        logger.info(f"Manual execution of job {job_id} completed successfully")
        return {
            "job_id": job_id,
            "status": "success",
            "executed_at": executed_at.isoformat(),
            "result": result,
        }
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }


def list_registered_jobs() -> list[dict[str, Any]]:
    jobs = []

    for job_id in _job_registry:
        job_info: dict[str, Any] = {"job_id": job_id, "registered": True}

        if _scheduler is not None:
            scheduled_job = _scheduler.get_job(job_id)
            next_run = scheduled_job.next_run_time if scheduled_job else None
            job_info["next_run_time"] = next_run.isoformat() if next_run else None
            job_info["is_paused"] = next_run is None

        jobs.append(job_info)

    return jobs


def pause_job(job_id: str) -> bool:
    """Returns False if the scheduler is not running or the job is unknown."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot pause job: {job_id}")
        return False

    _scheduler.pause_job(job_id)
    logger.info(f"Paused job: {job_id}")
    return True


def resume_job(job_id: str) -> bool:
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot resume job: {job_id}")
        return False

    _scheduler.resume_job(job_id)
    logger.info(f"Resumed job: {job_id}")
    return True
