"""Redis-backed cache.

Values are stored as JSON strings. Every failure is logged and treated as a
cache miss so a Redis outage never breaks a request.
"""

import json
from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from .base import Cache

logger = structlog.get_logger()


class RedisCache(Cache):
    """Cache backed by a Redis server."""

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        key_prefix: str = "enhanced-context:",
    ) -> None:
        """Initialize the cache.

        Args:
            url: Redis connection URL (ignored when client is given)
            client: Pre-built async client
            key_prefix: Namespace applied to every key
        """
        if client is None:
            if url is None:
                raise ValueError("RedisCache requires a url or a client")
            client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.client.get(self._key(key))
        except RedisError as e:
            logger.warning("redis_cache.get_failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("redis_cache.corrupt_entry", key=key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        try:
            await self.client.set(
                self._key(key), json.dumps(value), ex=ttl_seconds or None
            )
        except RedisError as e:
            logger.warning("redis_cache.set_failed", key=key, error=str(e))

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except RedisError as e:
            logger.warning("redis_cache.delete_failed", key=key, error=str(e))

    async def clear(self, prefix: str | None = None) -> None:
        if prefix is None:
            # Flushing a shared server is never done implicitly
            logger.warning("redis_cache.clear_all_skipped")
            return
        try:
            keys = [k async for k in self.client.scan_iter(match=self._key(prefix) + "*")]
            if keys:
                await self.client.delete(*keys)
        except RedisError as e:
            logger.warning("redis_cache.clear_failed", prefix=prefix, error=str(e))

    async def has(self, key: str) -> bool:
        try:
            return bool(await self.client.exists(self._key(key)))
        except RedisError as e:
            logger.warning("redis_cache.exists_failed", key=key, error=str(e))
            return False

    async def close(self) -> None:
        await self.client.aclose()
