"""
Unit tests for rate limiting.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from request_manager.core import rate_limit
from request_manager.core.rate_limit import RateLimitExceeded, check_rate_limit


@pytest.fixture(autouse=True)
def reset_memory_store():
    """Start each test with an empty in-memory store."""
    rate_limit._memory_store.clear()
    yield
    rate_limit._memory_store.clear()


@pytest.fixture
def mock_redis():
    """Create a mock Redis client whose pipeline reports an empty window."""
    redis = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, 0, 1, True])
    redis.pipeline.return_value = pipe
    return redis


class TestMemoryFallback:
    """Tests for the in-memory sliding window."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        """Requests up to the limit pass, the next is refused."""
        with patch("request_manager.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            results = [await check_rate_limit("digest:test:u1", 3, 600) for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        """Each key has its own window."""
        with patch("request_manager.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            for _ in range(3):
                await check_rate_limit("digest:test:u1", 3, 600)

            assert await check_rate_limit("digest:test:u2", 3, 600) is True

    def test_old_entries_expire(self):
        """Entries older than the window are dropped."""
        with patch("request_manager.core.rate_limit.time.time", return_value=1000.0):
            for _ in range(3):
                rate_limit._check_rate_limit_memory("k", 3, 600)
            assert rate_limit._check_rate_limit_memory("k", 3, 600) is False

        with patch("request_manager.core.rate_limit.time.time", return_value=1601.0):
            assert rate_limit._check_rate_limit_memory("k", 3, 600) is True


class TestRedisBackend:
    """Tests for the Redis sliding window."""

    @pytest.mark.asyncio
    async def test_under_limit_is_allowed(self, mock_redis):
        """Redis count below the limit allows the request."""
        with patch("request_manager.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            assert await check_rate_limit("digest:test:u1", 3, 600) is True

        pipe = mock_redis.pipeline.return_value
        pipe.zadd.assert_called_once()
        pipe.expire.assert_called_once_with("digest:test:u1", 600)

    @pytest.mark.asyncio
    async def test_at_limit_is_rejected(self, mock_redis):
        """Redis count at the limit refuses the request."""
        mock_redis.pipeline.return_value.execute = AsyncMock(return_value=[0, 3, 1, True])

        with patch("request_manager.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            assert await check_rate_limit("digest:test:u1", 3, 600) is False

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self, mock_redis):
        """Redis errors fall back to the in-memory store."""
        mock_redis.pipeline.return_value.execute = AsyncMock(side_effect=ConnectionError("down"))

        with patch("request_manager.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            assert await check_rate_limit("digest:test:u1", 3, 600) is True

        assert len(rate_limit._memory_store["digest:test:u1"]) == 1


class TestRateLimitExceeded:
    def test_is_429_with_retry_after(self):
        """The exception is a 429 with Retry-After."""
        error = RateLimitExceeded(3, 600)

        assert error.status_code == 429
        assert error.headers == {"Retry-After": "600"}
        assert error.detail["error"] == "RATE_LIMIT_EXCEEDED"
