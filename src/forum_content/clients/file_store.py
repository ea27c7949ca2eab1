"""Client for the external file store.

Uploads are a required dependency whenever files are submitted: a failure
part-way through a multi-file upload deletes whatever was already stored for
the same request before the error reaches the caller. Deletions are
best-effort and only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx

from forum_content.core.errors import DependencyUnavailableError
from forum_content.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadItem:
    """A file received from the client, held in memory until uploaded."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def storage_filename(post_id: str, original_name: str, now: datetime | None = None) -> str:
    """Return the stored name ``post:<post_id>-<timestamp>-<original>``."""
    stamp = (now or datetime.now(UTC)).isoformat().replace(":", "-").replace(".", "-")
    return f"post:{post_id}-{stamp}-{original_name}"


class FileStore:
    """HTTP wrapper around ``POST /upload`` and ``DELETE /delete``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.file_service_url
        self.timeout_seconds = timeout_seconds or settings.file_service_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        )

    async def upload(
        self,
        files: Sequence[UploadItem],
        post_id: str,
        kind: str = "attachment",
    ) -> list[str]:
        """Upload ``files`` and return their URLs in order.

        Raises:
            DependencyUnavailableError: If any upload fails; files stored
                earlier in the same call have been deleted by then.
        """
        if not files:
            return []

        uploaded: list[str] = []
        try:
            async with self._client() as client:
                for item in files:
                    uploaded.append(await self._upload_one(client, item, post_id, kind))
        except (httpx.HTTPError, DependencyUnavailableError, ValueError) as exc:
            logger.error("File upload for post %s failed: %s", post_id, exc)
            if uploaded:
                await self.delete(uploaded)
            if isinstance(exc, DependencyUnavailableError):
                raise
            raise DependencyUnavailableError(f"failed to upload files: {exc}") from exc
        return uploaded

    async def _upload_one(
        self,
        client: httpx.AsyncClient,
        item: UploadItem,
        post_id: str,
        kind: str,
    ) -> str:
        response = await client.post(
            "/upload",
            files={"file": (storage_filename(post_id, item.filename), item.content, item.content_type)},
            data={"fileType": kind, "postId": post_id},
        )
        if response.status_code >= 400:
            raise DependencyUnavailableError(
                f"file service responded with {response.status_code}"
            )
        payload = response.json()
        data = payload.get("data") or {}
        url = data.get("url") or data.get("fileUrl")
        if not payload.get("success") or not url:
            raise DependencyUnavailableError("file service returned no file URL")
        return str(url)

    async def delete(self, urls: Iterable[str]) -> None:
        """Delete stored files; failures are logged and swallowed."""
        urls = list(urls)
        if not urls:
            return
        async with self._client() as client:
            for url in urls:
                try:
                    response = await client.request("DELETE", "/delete", json={"url": url})
                    if response.status_code >= 400:
                        logger.warning(
                            "File service refused to delete %s (%s)", url, response.status_code
                        )
                except httpx.HTTPError as exc:
                    logger.warning("Failed to delete file %s: %s", url, exc)


_file_store: FileStore | None = None


def get_file_store() -> FileStore:
    """Return the process-wide file store client."""
    global _file_store
    if _file_store is None:
        _file_store = FileStore()
    return _file_store
