"""Redis cache backend."""
from __future__ import annotations

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from vetsaas.cache.backends.base import CacheBackend
from vetsaas.core.exceptions import CacheError


class RedisBackend(CacheBackend):
    def __init__(self, url: str) -> None:
        self._client = redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            raise CacheError(f"Redis get failed: {exc}") from exc

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        try:
            return bool(await self._client.set(key, value, ex=ex))
        except RedisError as exc:
            raise CacheError(f"Redis set failed: {exc}") from exc

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return await self._client.delete(*keys)
        except RedisError as exc:
            raise CacheError(f"Redis delete failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
