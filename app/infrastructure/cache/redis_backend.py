"""Redis-backed cache shared by every API process."""
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis

from app.domain.repositories import ICacheBackend

logger = logging.getLogger(__name__)

KEY_PREFIX = "bookprepper:cache:"


class RedisCacheBackend(ICacheBackend):
    """JSON values stored with ``SETEX`` so Redis handles expiry."""

    def __init__(self, client: aioredis.Redis):
        self.client = client

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(f"{KEY_PREFIX}{key}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable cache entry: {key}")
            await self.invalidate(key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self.client.setex(f"{KEY_PREFIX}{key}", ttl_seconds, json.dumps(value))

    async def invalidate(self, key: str) -> None:
        await self.client.delete(f"{KEY_PREFIX}{key}")
