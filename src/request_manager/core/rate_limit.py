"""
Rate Limiting Module

Provides rate limiting for API endpoints using Redis as the backend.
Falls back to in-memory storage if Redis is unavailable.

Used on endpoints that send email on demand (test digests) so a user cannot
flood their own inbox or the mail API quota.
"""

import logging
import time

from fastapi import HTTPException, status
from redis.asyncio import Redis

from request_manager.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Uses a sliding window algorithm with Redis sorted sets.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    # Remove old entries outside the window
    pipe.zremrangebyscore(key, 0, window_start)
    # Count current requests in window
    pipe.zcard(key)
    # Add current request
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using in-memory storage.

    Fallback when Redis is unavailable. Does not work across multiple
    server instances.
    """
    now = time.time()
    window_start = now - window_seconds

    timestamps = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(timestamps) >= limit:
        _memory_store[key] = timestamps
        return False

    timestamps.append(now)
    _memory_store[key] = timestamps
    return True


async def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "digest:test:user_123")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    redis_client = await get_redis()

    if redis_client is not None:
        try:
            return await _check_rate_limit_redis(redis_client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


__all__ = [
    "check_rate_limit",
    "RateLimitExceeded",
]
