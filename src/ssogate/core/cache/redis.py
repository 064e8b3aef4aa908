"""Redis client configuration and connection management.

Backs the server-side session store and the OAuth state cache.
"""

import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from ssogate.config import settings


# Connection pool for efficient connection reuse
_pool: ConnectionPool | None = None


def _get_pool() -> ConnectionPool:
    """Get or create the Redis connection pool."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            str(settings.redis_url),
            max_connections=50,
            decode_responses=True,
        )
    return _pool


@asynccontextmanager
async def redis_client() -> AsyncGenerator[redis.Redis, None]:  # type: ignore[type-arg]
    """Context manager for a pooled Redis client.

    Usage:
        async with redis_client() as client:
            await client.set("key", "value")
    """
    client = redis.Redis(connection_pool=_get_pool())
    try:
        yield client
    finally:
        await client.aclose()


async def close_redis_pool() -> None:
    """Close the Redis connection pool.

    Call this during application shutdown.
    """
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


class RedisCache:
    """JSON key/value cache with a key prefix."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}" if self.prefix else key

    async def set_json(
        self,
        key: str,
        value: dict[str, Any],
        ttl_seconds: int | None = None,
    ) -> None:
        """Store a dictionary as JSON, optionally expiring after ttl_seconds."""
        payload = json.dumps(value)
        async with redis_client() as client:
            if ttl_seconds:
                await client.setex(self._key(key), ttl_seconds, payload)
            else:
                await client.set(self._key(key), payload)

    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Return the stored dictionary, or None if missing or expired."""
        async with redis_client() as client:
            data = await client.get(self._key(key))
        return json.loads(data) if data else None

    async def get_json_and_delete(self, key: str) -> dict[str, Any] | None:
        """Return the stored dictionary and delete it atomically (one-time use)."""
        async with redis_client() as client:
            data = await client.getdel(self._key(key))
        return json.loads(data) if data else None

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        async with redis_client() as client:
            return await client.delete(self._key(key)) > 0
