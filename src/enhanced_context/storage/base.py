"""Base classes and types for content storage and caching."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


class StorageError(Exception):
    """Base error for content store failures."""

    pass


class ContentNotFoundError(StorageError):
    """The requested key does not exist in the store."""

    pass


class StorageUnavailableError(StorageError):
    """The backend could not be reached or returned an unexpected response."""

    pass


@dataclass
class StorageMetadata:
    """Metadata about a stored document."""

    size: int
    last_modified: datetime
    content_type: str = "text/plain"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "size": self.size,
            "last_modified": self.last_modified.isoformat(),
            "content_type": self.content_type,
        }


class ContentStore(ABC):
    """Abstract key-value store of text documents.

    Keys are slash-separated relative paths such as ``contexts/sdlc.mdc``.
    """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a key exists.

        Args:
            path: Document key
        """
        pass

    @abstractmethod
    async def read(self, path: str) -> str:
        """Read a document as text.

        Args:
            path: Document key

        Raises:
            ContentNotFoundError: If the key does not exist
            StorageUnavailableError: If the backend failed
        """
        pass

    @abstractmethod
    async def write(self, path: str, content: str) -> None:
        """Write a document, creating or replacing it.

        Args:
            path: Document key
            content: Text content
        """
        pass

    @abstractmethod
    async def list(self, prefix: str) -> list[str]:
        """List document keys directly under a prefix.

        Args:
            prefix: Directory-like key prefix

        Returns:
            Keys (including the prefix), empty if nothing is there
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a document.

        Args:
            path: Document key
        """
        pass

    @abstractmethod
    async def get_metadata(self, path: str) -> StorageMetadata | None:
        """Get metadata for a document, or None if it does not exist.

        Args:
            path: Document key
        """
        pass

    async def initialize(self) -> None:
        """Prepare the backend (create directories, etc.)."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


class Cache(ABC):
    """Abstract key-value cache with optional per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value, or None if missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value, optionally expiring after ttl_seconds."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a single key."""
        pass

    @abstractmethod
    async def clear(self, prefix: str | None = None) -> None:
        """Remove every key, or every key starting with prefix."""
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check whether a live entry exists for key."""
        pass
