"""Async Redis client shared across the application.

Used for the catalog stats cache when ``CACHE_BACKEND=redis``.
"""

from functools import lru_cache

import redis.asyncio as aioredis

from app.core.config import settings


@lru_cache()
def get_redis_client() -> aioredis.Redis:
    """Process-wide client; redis-py manages its own connection pool."""
    return aioredis.from_url(settings.redis_url, decode_responses=True)
