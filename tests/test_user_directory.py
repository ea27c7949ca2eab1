# tests/test_user_directory.py
"""Tests for the cached user directory client."""

import httpx
import pytest

from forum_content.clients.user_directory import UserCache, UserDirectory, UserSummary
from forum_content.core.errors import DependencyUnavailableError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = UserCache(ttl_seconds=10, clock=clock)
    summary = UserSummary(user_id="u1")
    cache.put("u1", summary)
    assert cache.get("u1") == (True, summary)

    clock.now = 10
    assert cache.get("u1") == (False, None)
    assert len(cache) == 0


def test_cache_evict_and_evict_all() -> None:
    cache = UserCache(ttl_seconds=60)
    cache.put("a", None)
    cache.put("b", UserSummary(user_id="b"))
    cache.evict("a")
    assert cache.get("a") == (False, None)
    cache.evict_all()
    assert len(cache) == 0


def test_put_prunes_expired_entries_for_other_keys() -> None:
    clock = FakeClock()
    cache = UserCache(ttl_seconds=10, clock=clock)
    for i in range(50):
        cache.put(f"u{i}", None)
    assert len(cache) == 50

    clock.now = 15
    cache.put("fresh", None)
    assert len(cache) == 1
    assert cache.get("fresh") == (True, None)


def test_cache_drops_oldest_at_capacity() -> None:
    clock = FakeClock()
    cache = UserCache(ttl_seconds=60, clock=clock, max_entries=2)
    cache.put("a", None)
    clock.now = 1
    cache.put("b", None)
    clock.now = 2
    cache.put("a", UserSummary(user_id="a"))
    cache.put("c", None)
    assert len(cache) == 2
    assert cache.get("b") == (False, None)
    assert cache.get("a") == (True, UserSummary(user_id="a"))


@pytest.mark.asyncio
async def test_lookup_hits_cache_on_second_call(user_service, user_directory) -> None:
    user_service.users["u1"] = {"id": "u1", "first_name": "Ada", "last_name": "L"}
    first = await user_directory.get_by_id("u1")
    second = await user_directory.get_by_id("u1")
    assert first == second == UserSummary(user_id="u1", first_name="Ada", last_name="L")
    assert user_service.calls == 1


@pytest.mark.asyncio
async def test_missing_user_is_cached_as_none(user_service, user_directory) -> None:
    assert await user_directory.get_by_id("ghost") is None
    assert await user_directory.get_by_id("ghost") is None
    assert user_service.calls == 1


@pytest.mark.asyncio
async def test_failures_degrade_to_none_and_are_not_cached(user_service, user_directory) -> None:
    user_service.fail = True
    assert await user_directory.get_by_id("u1") is None
    with pytest.raises(DependencyUnavailableError):
        await user_directory.lookup("u1")

    user_service.fail = False
    user_service.users["u1"] = {"user_id": "u1"}
    assert await user_directory.get_by_id("u1") == UserSummary(user_id="u1")


@pytest.mark.asyncio
async def test_timeouts_degrade_to_none() -> None:
    def _timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    directory = UserDirectory(
        "http://users.test",
        timeout_seconds=0.1,
        cache=UserCache(60),
        transport=httpx.MockTransport(_timeout),
    )
    assert await directory.get_by_id("u1") is None


@pytest.mark.asyncio
async def test_get_many_deduplicates(user_service, user_directory) -> None:
    user_service.users["a"] = {"user_id": "a"}
    result = await user_directory.get_many(["a", "b", "a"])
    assert result == {"a": UserSummary(user_id="a"), "b": None}
    assert user_service.calls == 2
