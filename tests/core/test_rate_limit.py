"""
Tests for the sliding-window rate limiter.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from mosque_registry.core import rate_limit
from mosque_registry.core.rate_limit import RateLimitExceeded, check_rate_limit, enforce_rate_limit


@pytest.fixture(autouse=True)
def no_redis():
    with patch("mosque_registry.core.redis.redis_client", None):
        yield


@pytest.mark.asyncio
async def test_memory_fallback_enforces_limit():
    key = f"test:{uuid4()}"

    assert await check_rate_limit(key, 2, 60)
    assert await check_rate_limit(key, 2, 60)
    assert not await check_rate_limit(key, 2, 60)


@pytest.mark.asyncio
async def test_enforce_raises_429_with_retry_after():
    key = f"test:{uuid4()}"
    await enforce_rate_limit(key, 1, 900)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await enforce_rate_limit(key, 1, 900)

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["Retry-After"] == "900"


@pytest.mark.asyncio
async def test_redis_error_falls_back_to_memory():
    client = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=RedisConnectionError("down"))
    client.pipeline.return_value = pipe

    with patch("mosque_registry.core.redis.redis_client", client):
        key = f"test:{uuid4()}"
        assert await check_rate_limit(key, 1, 60)

    assert key in rate_limit._memory_store
