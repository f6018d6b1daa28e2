"""
Shared Redis pool.

Only the auto-clockout lock talks to Redis directly; rate-limit counters
go through slowapi's own storage connection.
"""

import redis.asyncio as aioredis

from marketplace.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    """Drop pooled connections on shutdown."""
    await _pool.disconnect()
