"""Shared Redis client used by the Redis session backend."""

from typing import Optional

from redis.asyncio import Redis

from workflow360.core.config import settings

_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Return a lazily initialized Redis client shared across the service."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


async def close_redis_client() -> None:
    """Close the shared Redis client; invoked during application shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
