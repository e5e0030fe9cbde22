"""In-process TTL cache."""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

from app.domain.repositories import ICacheBackend

logger = logging.getLogger(__name__)


class InMemoryTTLCache(ICacheBackend):
    """Per-process cache; entries expire ``ttl_seconds`` after they are set."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    async def invalidate(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)
