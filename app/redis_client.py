"""
Async Redis clients (redis-py) for the exchange-rate table cache.

The API process shares one client, closed on shutdown.  Celery tasks run
their own event loop and open a private client with ``new_client``.
TLS is switched on with ``REDIS_SSL`` for managed Redis instances.
"""

import redis.asyncio as aioredis

from app.config import settings


def new_client() -> aioredis.Redis:
    return aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        ssl=settings.REDIS_SSL,
    )


redis = new_client()


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency returning the shared client."""
    return redis


async def close_redis() -> None:
    await redis.aclose()
