"""
Redis connection used by the badge cache.

Redis is optional at runtime: when it is down, badge counts fall back to
process memory and /health reports "degraded".
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError
from logitrack.app.core.config import settings

logger = logging.getLogger("logitrack.redis")

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency returning the shared client."""
    return redis_client


async def ping_redis() -> bool:
    try:
        return bool(await redis_client.ping())
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
