"""Remote blob store backend over HTTP."""

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
import structlog

from .base import (
    ContentNotFoundError,
    ContentStore,
    StorageMetadata,
    StorageUnavailableError,
)

logger = structlog.get_logger()


class BlobContentStore(ContentStore):
    """Content store backed by an HTTP object storage API.

    Objects live at ``{url}/{prefix}/{path}``. The API accepts HEAD, GET, PUT
    and DELETE on object URLs, and ``GET {url}?prefix=...`` returns
    ``{"blobs": [{"pathname": ...}, ...]}``.
    """

    def __init__(
        self,
        url: str,
        token: str,
        prefix: str = "wama",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            url: Base URL of the blob API
            token: Bearer token
            prefix: Key prefix under which all content lives
            timeout: Per-request timeout in seconds
            client: Pre-built client (tests inject one with a mock transport)
        """
        self.url = url.rstrip("/")
        self.prefix = prefix.strip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    def _key(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self.prefix}/{path}" if self.prefix else path

    def _object_url(self, path: str) -> str:
        return f"{self.url}/{self._key(path)}"

    def _strip_prefix(self, pathname: str) -> str:
        if self.prefix and pathname.startswith(self.prefix + "/"):
            return pathname[len(self.prefix) + 1 :]
        return pathname

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(
                method, url, headers=self._headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.warning("blob_store.request_failed", method=method, error=str(e))
            raise StorageUnavailableError(f"Blob store request failed: {e}") from e

    async def exists(self, path: str) -> bool:
        try:
            response = await self._request("HEAD", self._object_url(path))
        except StorageUnavailableError:
            return False
        return response.status_code == 200

    async def read(self, path: str) -> str:
        response = await self._request("GET", self._object_url(path))
        if response.status_code == 404:
            raise ContentNotFoundError(f"Not found: {path}")
        if response.status_code != 200:
            raise StorageUnavailableError(
                f"Blob store returned {response.status_code} for {path}"
            )
        return response.text

    async def write(self, path: str, content: str) -> None:
        response = await self._request(
            "PUT",
            self._object_url(path),
            content=content.encode("utf-8"),
        )
        if response.status_code not in (200, 201, 204):
            raise StorageUnavailableError(
                f"Blob store returned {response.status_code} writing {path}"
            )

    async def list(self, prefix: str) -> list[str]:
        key_prefix = self._key(prefix.rstrip("/") + "/")
        try:
            response = await self._request(
                "GET", self.url, params={"prefix": key_prefix}
            )
        except StorageUnavailableError:
            return []
        if response.status_code != 200:
            logger.warning(
                "blob_store.list_failed", prefix=prefix, status=response.status_code
            )
            return []

        try:
            body = response.json()
        except ValueError as e:
            logger.warning("blob_store.list_invalid_response", prefix=prefix, error=str(e))
            return []
        blobs = body.get("blobs", []) if isinstance(body, dict) else []
        if not isinstance(blobs, list):
            logger.warning("blob_store.list_invalid_response", prefix=prefix)
            return []

        results = []
        for blob in blobs:
            if not isinstance(blob, dict):
                continue
            pathname = self._strip_prefix(str(blob.get("pathname", "")))
            rest = pathname[len(prefix.rstrip("/")) + 1 :]
            # Direct children only
            if rest and "/" not in rest:
                results.append(pathname)
        return sorted(results)

    async def delete(self, path: str) -> None:
        response = await self._request("DELETE", self._object_url(path))
        if response.status_code == 404:
            raise ContentNotFoundError(f"Not found: {path}")
        if response.status_code not in (200, 202, 204):
            raise StorageUnavailableError(
                f"Blob store returned {response.status_code} deleting {path}"
            )

    async def get_metadata(self, path: str) -> StorageMetadata | None:
        try:
            response = await self._request("HEAD", self._object_url(path))
        except StorageUnavailableError:
            return None
        if response.status_code != 200:
            return None

        last_modified = datetime.now(UTC)
        header = response.headers.get("last-modified")
        if header:
            try:
                last_modified = parsedate_to_datetime(header)
            except (TypeError, ValueError):
                pass
        return StorageMetadata(
            size=int(response.headers.get("content-length", 0)),
            last_modified=last_modified,
            content_type=response.headers.get("content-type", "text/plain"),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
