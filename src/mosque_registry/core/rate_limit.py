"""
Rate Limiting

Sliding-window rate limiting backed by Redis sorted sets, with an
in-process fallback when Redis is unavailable.

Used on:
- Super admin lifecycle actions (approve, reject, remove, regenerate)
- Admin registration (per client IP)
- Verification code revalidation attempts (per admin, limits code guessing)
"""

import logging
import time

from fastapi import HTTPException, status
from redis.exceptions import RedisError

from mosque_registry.core import redis as redis_module

logger = logging.getLogger(__name__)

# Fallback storage: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds its request budget (HTTP 429)."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": (
                    f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds."
                ),
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _check_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Per-process fallback; not shared between workers."""
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Record a hit for ``key`` and report whether it is within the limit.

    Args:
        key: Rate limit bucket, e.g. "superadmin:reject:<user id>"
        limit: Maximum hits allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is allowed, False if the limit is exceeded
    """
    client = redis_module.redis_client
    if client is not None:
        try:
            return await _check_redis(client, key, limit, window_seconds)
        except RedisError as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """Like check_rate_limit, but raises RateLimitExceeded when over the limit."""
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "check_rate_limit",
    "enforce_rate_limit",
    "RateLimitExceeded",
]
