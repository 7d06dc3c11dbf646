"""Content storage and caching backends."""

from .base import (
    Cache,
    ContentNotFoundError,
    ContentStore,
    StorageError,
    StorageMetadata,
    StorageUnavailableError,
)
from .blob import BlobContentStore
from .cache import CachedContentStore, MemoryCache
from .local import HybridContentStore, LocalContentStore
from .redis_cache import RedisCache

__all__ = [
    "BlobContentStore",
    "Cache",
    "CachedContentStore",
    "ContentNotFoundError",
    "ContentStore",
    "HybridContentStore",
    "LocalContentStore",
    "MemoryCache",
    "RedisCache",
    "StorageError",
    "StorageMetadata",
    "StorageUnavailableError",
]
