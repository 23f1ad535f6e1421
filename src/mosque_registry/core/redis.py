"""
Redis Connection

Shared async Redis client. Redis backs the rate limiter; the API keeps
working without it (the limiter falls back to process memory).
"""

import logging

from redis.asyncio import Redis, from_url

from mosque_registry.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect to Redis on startup and verify the connection with PING."""
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    logger.info("Redis connection established")
    return redis_client


async def get_redis() -> Redis | None:
    """FastAPI dependency returning the shared client, or None when Redis is down."""
    return redis_client


def is_redis_available() -> bool:
    return redis_client is not None


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
