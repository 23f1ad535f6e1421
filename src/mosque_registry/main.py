"""
Mosque Registry API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from mosque_registry.api import api_router
from mosque_registry.core import redis as redis_module
from mosque_registry.core.config import settings
from mosque_registry.core.database import async_session_maker, close_db, init_db
from mosque_registry.core.redis import close_redis, init_redis
from mosque_registry.core.scheduler import (
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from mosque_registry.modules.mosques.jobs import register_mosque_jobs

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of Redis, the database and the scheduler.
    In production a failed dependency aborts startup.
    """
    logger.info(f"Starting Mosque Registry API in {settings.python_env} mode...")

    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    if settings.enable_scheduler:
        try:
            register_mosque_jobs()
            await start_scheduler()
            logger.info("[OK] Background scheduler started")
        except Exception as e:
            logger.error(f"[FAIL] Background scheduler failed to start: {e}")
            if settings.is_production:
                raise

    yield

    logger.info("Shutting down Mosque Registry API...")

    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Mosque Registry API",
    description="Mosque admin registration and verification code lifecycle",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Mosque Registry API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


# ============================================
# Debug Endpoints (development only)
# ============================================


def _require_development() -> None:
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")


@app.get("/debug/db", tags=["Debug"])
async def debug_db():
    """Test database connection."""
    _require_development()
    try:
        async with async_session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            return {"database": "connected", "result": result.scalar()}
    except Exception as e:
        return {"database": "error", "message": str(e)}


@app.get("/debug/redis", tags=["Debug"])
async def debug_redis():
    """Test Redis connection."""
    _require_development()
    try:
        if redis_module.redis_client:
            await redis_module.redis_client.ping()
            return {"redis": "connected"}
        return {"redis": "not initialized"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


@app.get("/debug/jobs", tags=["Debug"])
async def list_jobs():
    """List registered background jobs and their next run time."""
    _require_development()
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
async def trigger_job(job_id: str):
    """
    Run a background job now, bypassing its schedule.

    Available jobs:
        - mosques_regenerate_expired_codes
        - mosques_warn_expiring_codes
    """
    _require_development()
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/debug/jobs/{job_id}/pause", tags=["Debug"])
async def pause_job_endpoint(job_id: str):
    _require_development()
    return {"job_id": job_id, "paused": pause_job(job_id)}


@app.post("/debug/jobs/{job_id}/resume", tags=["Debug"])
async def resume_job_endpoint(job_id: str):
    _require_development()
    return {"job_id": job_id, "resumed": resume_job(job_id)}
