"""In-process cache and read-through caching store."""

import threading
import time
from typing import Any

import structlog

from .base import Cache, ContentStore, StorageMetadata

logger = structlog.get_logger()


class MemoryCache(Cache):
    """Thread-safe in-process cache with per-entry expiry.

    Expired entries are dropped lazily on access.
    """

    def __init__(self, default_ttl: int | None = None) -> None:
        self.default_ttl = default_ttl
        self._entries: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def clear(self, prefix: str | None = None) -> None:
        with self._lock:
            if prefix is None:
                self._entries.clear()
                return
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    async def has(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachedContentStore(ContentStore):
    """Read-through cache in front of another content store.

    Only ``read`` results are cached. Writes and deletes go straight to the
    wrapped store and invalidate the cached copy.
    """

    KEY_PREFIX = "content:"

    def __init__(self, inner: ContentStore, cache: Cache, ttl_seconds: int) -> None:
        self.inner = inner
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _key(self, path: str) -> str:
        return f"{self.KEY_PREFIX}{path}"

    async def exists(self, path: str) -> bool:
        if await self.cache.has(self._key(path)):
            return True
        return await self.inner.exists(path)

    async def read(self, path: str) -> str:
        cached = await self.cache.get(self._key(path))
        if cached is not None:
            return cached
        content = await self.inner.read(path)
        await self.cache.set(self._key(path), content, self.ttl_seconds)
        return content

    async def write(self, path: str, content: str) -> None:
        await self.inner.write(path, content)
        await self.cache.delete(self._key(path))

    async def list(self, prefix: str) -> list[str]:
        return await self.inner.list(prefix)

    async def delete(self, path: str) -> None:
        await self.inner.delete(path)
        await self.cache.delete(self._key(path))

    async def invalidate(self, prefix: str | None = None) -> None:
        """Drop cached reads whose key starts with ``prefix``, or all of them.

        Used when content changed behind the store's back, e.g. a profile
        edited directly on disk.
        """
        await self.cache.clear(self._key(prefix or ""))
        logger.debug("cached_store.invalidated", prefix=prefix or "*")

    async def get_metadata(self, path: str) -> StorageMetadata | None:
        return await self.inner.get_metadata(path)

    async def initialize(self) -> None:
        await self.inner.initialize()

    async def close(self) -> None:
        await self.inner.close()
