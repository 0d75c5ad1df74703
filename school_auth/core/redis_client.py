"""
School Auth — Redis client

One client per process, shared by the token denylist and the rate limiter.
Tests swap in a fake by assigning _redis_client.
"""
import logging

import redis.asyncio as aioredis

from school_auth.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_redis_client: aioredis.Redis | None = None


def create_redis(url: str) -> aioredis.Redis:
    """Build a client with string replies and bounded connect/read timeouts."""
    return aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        socket_timeout=settings.HEALTH_CHECK_TIMEOUT,
        health_check_interval=30,
    )


def get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = create_redis(settings.redis_url)
        logger.info("Redis client created for %s:%s/%s", settings.REDIS_HOST, settings.REDIS_PORT, settings.REDIS_DB)
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
