"""
Redis Configuration

Async Redis client used for rate limiting.
"""

from redis.asyncio import Redis, from_url

from request_manager.core.config import settings

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Test connection
    await redis_client.ping()
    return redis_client


async def get_redis() -> Redis | None:
    """
    Get Redis client instance.

    Returns None if Redis is not available (optional dependency).
    """
    return redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
