"""Local filesystem content stores."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import structlog

from .base import ContentNotFoundError, ContentStore, StorageError, StorageMetadata

logger = structlog.get_logger()


class LocalContentStore(ContentStore):
    """Content store rooted at a local directory.

    Blocking filesystem calls run in a worker thread so the event loop only
    suspends at storage boundaries.
    """

    def __init__(self, base_dir: Path | str) -> None:
        """Initialize the store.

        Args:
            base_dir: Root directory for all keys
        """
        self.base_dir = Path(base_dir).expanduser()

    def _resolve(self, path: str) -> Path:
        root = self.base_dir.resolve()
        full = (root / path).resolve()
        if full != root and root not in full.parents:
            raise StorageError(f"Path escapes store root: {path}")
        return full

    async def exists(self, path: str) -> bool:
        try:
            full = self._resolve(path)
        except StorageError:
            return False
        return await asyncio.to_thread(full.is_file)

    async def read(self, path: str) -> str:
        full = self._resolve(path)
        try:
            return await asyncio.to_thread(full.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise ContentNotFoundError(f"Not found: {path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    async def write(self, path: str, content: str) -> None:
        full = self._resolve(path)

        def _write() -> None:
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    async def list(self, prefix: str) -> list[str]:
        try:
            directory = self._resolve(prefix)
        except StorageError:
            return []

        def _list() -> list[str]:
            if not directory.is_dir():
                return []
            names = sorted(p.name for p in directory.iterdir() if p.is_file())
            base = prefix.rstrip("/")
            return [f"{base}/{name}" if base else name for name in names]

        try:
            return await asyncio.to_thread(_list)
        except OSError as e:
            raise StorageError(f"Cannot list {prefix}: {e}") from e

    async def delete(self, path: str) -> None:
        full = self._resolve(path)
        try:
            await asyncio.to_thread(full.unlink)
        except FileNotFoundError as e:
            raise ContentNotFoundError(f"Not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Cannot delete {path}: {e}") from e

    async def get_metadata(self, path: str) -> StorageMetadata | None:
        try:
            full = self._resolve(path)
            stats = await asyncio.to_thread(full.stat)
        except (StorageError, OSError):
            return None
        return StorageMetadata(
            size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime, tz=UTC),
        )

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)


class HybridContentStore(ContentStore):
    """Writable primary directory layered over a read-only fallback.

    Reads check the primary first (typically ``~/.wama``) and fall back to
    the content bundled with the package. Writes and deletes only touch the
    primary.
    """

    SUBDIRECTORIES = ("contexts", "templates", "agents", "domain-agents")

    def __init__(self, primary_dir: Path | str, fallback_dir: Path | str) -> None:
        self.primary = LocalContentStore(primary_dir)
        self.fallback = LocalContentStore(fallback_dir)

    async def exists(self, path: str) -> bool:
        return await self.primary.exists(path) or await self.fallback.exists(path)

    async def read(self, path: str) -> str:
        if await self.primary.exists(path):
            return await self.primary.read(path)
        return await self.fallback.read(path)

    async def write(self, path: str, content: str) -> None:
        await self.primary.write(path, content)

    async def list(self, prefix: str) -> list[str]:
        """List keys from both layers; primary copies shadow fallback ones on read."""
        primary = await self.primary.list(prefix)
        fallback = await self.fallback.list(prefix)
        files = sorted(set(primary) | set(fallback))
        logger.debug(
            "hybrid_store.list",
            prefix=prefix,
            primary=len(primary),
            fallback=len(fallback),
            count=len(files),
        )
        return files

    async def delete(self, path: str) -> None:
        await self.primary.delete(path)

    async def get_metadata(self, path: str) -> StorageMetadata | None:
        metadata = await self.primary.get_metadata(path)
        if metadata is not None:
            return metadata
        return await self.fallback.get_metadata(path)

    async def initialize(self) -> None:
        """Create the primary layout if the directory is writable."""
        try:
            await self.primary.initialize()
            for sub in self.SUBDIRECTORIES:
                await asyncio.to_thread(
                    (self.primary.base_dir / sub).mkdir, parents=True, exist_ok=True
                )
            logger.info("hybrid_store.primary_ready", path=str(self.primary.base_dir))
        except OSError as e:
            logger.info(
                "hybrid_store.primary_unwritable",
                path=str(self.primary.base_dir),
                fallback=str(self.fallback.base_dir),
                error=str(e),
            )
