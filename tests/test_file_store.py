# tests/test_file_store.py
"""Tests for the file store client."""

from datetime import UTC, datetime

import httpx
import pytest

from forum_content.clients.file_store import FileStore, UploadItem, storage_filename
from forum_content.core.errors import DependencyUnavailableError


def _items(count: int) -> list[UploadItem]:
    return [UploadItem(filename=f"f{i}.txt", content=b"x") for i in range(count)]


def test_storage_filename_convention() -> None:
    now = datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)
    name = storage_filename("p1", "cat.png", now)
    assert name.startswith("post:p1-2024-05-06T07-08-09")
    assert name.endswith("-cat.png")


@pytest.mark.asyncio
async def test_upload_returns_urls_in_order(file_service, file_store) -> None:
    urls = await file_store.upload(_items(2), "p1", "image")
    assert urls == ["https://files.test/1", "https://files.test/2"]
    assert file_service.deleted == []


@pytest.mark.asyncio
async def test_upload_of_nothing_makes_no_requests(file_service, file_store) -> None:
    assert await file_store.upload([], "p1") == []
    assert file_service.uploaded == []


@pytest.mark.asyncio
async def test_partial_failure_deletes_earlier_uploads(file_service, file_store) -> None:
    file_service.fail_on_upload = 3
    with pytest.raises(DependencyUnavailableError):
        await file_store.upload(_items(3), "p1")
    assert file_service.deleted == ["https://files.test/1", "https://files.test/2"]


@pytest.mark.asyncio
async def test_transport_errors_become_dependency_errors() -> None:
    def _down(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    store = FileStore("http://files.test", transport=httpx.MockTransport(_down))
    with pytest.raises(DependencyUnavailableError):
        await store.upload(_items(1), "p1")


@pytest.mark.asyncio
async def test_upload_sends_prefixed_filename() -> None:
    seen: list[bytes] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.content)
        return httpx.Response(200, json={"success": True, "data": {"fileUrl": "https://f/1"}})

    store = FileStore("http://files.test", transport=httpx.MockTransport(_handler))
    assert await store.upload(_items(1), "p9", "attachment") == ["https://f/1"]
    assert b'filename="post:p9-' in seen[0]
    assert b"attachment" in seen[0]


@pytest.mark.asyncio
async def test_delete_is_best_effort() -> None:
    attempts: list[str] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request.url.path)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(500)

    store = FileStore("http://files.test", transport=httpx.MockTransport(_handler))
    await store.delete(["https://f/1", "https://f/2"])
    assert attempts == ["/delete", "/delete"]
