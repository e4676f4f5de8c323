# ortho_orders/services/kv_cache.py
"""
短期键值缓存端口（仅用于影子 Versorgung 草稿）。

生产实现基于 redis.asyncio；测试里换成内存替身（见 tests/_helpers.py）。
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Protocol

from redis import asyncio as aioredis

from ortho_orders.core.config import get_settings


class KeyValueCache(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisKeyValueCache:
    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueCache":
        return cls(aioredis.Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


@lru_cache
def get_cache() -> RedisKeyValueCache:
    """FastAPI 依赖 / 后台任务共用的缓存实例。"""
    return RedisKeyValueCache.from_url(get_settings().REDIS_URL)
