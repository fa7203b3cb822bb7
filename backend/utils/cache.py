# backend/utils/cache.py
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import redis.asyncio as redis_async
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

VERIFIER_PREFIX = "oauth_verifier:"
REDIRECT_TO_PREFIX = "redirect_to:"


class StateCache(ABC):
    """Short-lived key/value storage for OAuth state (PKCE verifiers, redirects)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    async def close(self) -> None:
        return None


class InMemoryStateCache(StateCache):
    """Process-local cache for development and tests."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._entries[key] = (value, time.monotonic() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisStateCache(StateCache):
    def __init__(self, url: str):
        self.client = redis_async.from_url(url, encoding="utf-8", decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
        except RedisError as e:
            logger.error(f"Failed to read {key} from cache: {e}")
            raise
        logger.debug("Cache lookup %s found=%s", key, value is not None)
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl)
        except RedisError as e:
            logger.error(f"Failed to store {key} in cache: {e}")
            raise

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            logger.error(f"Failed to delete {key} from cache: {e}")
            raise

    async def close(self) -> None:
        await self.client.aclose()
