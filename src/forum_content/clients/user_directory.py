"""Client for the external user directory.

User profiles only enrich responses. Lookups go through a process-scoped TTL
cache and a bounded timeout; callers that want graceful degradation use
:meth:`UserDirectory.get_by_id`, which never raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from forum_content.core.errors import DependencyUnavailableError
from forum_content.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NOT_FOUND = 404


@dataclass(frozen=True)
class UserSummary:
    """Public profile fields attached to posts and replies."""

    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UserSummary:
        return cls(
            user_id=str(payload.get("user_id") or payload.get("id")),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            profile_image_url=payload.get("profile_image_url"),
        )


class UserCache:
    """TTL cache of user lookups, including confirmed misses.

    Entries are kept in insertion order, which with a single TTL is also
    expiry order, so ``put`` can drop expired entries from the front and
    enforce ``max_entries`` by discarding the oldest.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, UserSummary | None]] = {}

    def get(self, key: str) -> tuple[bool, UserSummary | None]:
        """Return ``(hit, value)``; expired entries are evicted on access."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return False, None
        return True, value

    def put(self, key: str, value: UserSummary | None) -> None:
        now = self._clock()
        self._entries.pop(key, None)
        self._prune(now)
        if self.max_entries is not None:
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
        self._entries[key] = (now, value)

    def _prune(self, now: float) -> None:
        while self._entries:
            oldest = next(iter(self._entries))
            if now - self._entries[oldest][0] < self.ttl_seconds:
                break
            del self._entries[oldest]

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def evict_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class UserDirectory:
    """HTTP wrapper around ``GET /internal/users/{id}``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        cache: UserCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.user_service_url
        self.timeout_seconds = timeout_seconds or settings.user_service_timeout_seconds
        self.cache = cache or UserCache(
            settings.user_cache_ttl_seconds,
            max_entries=settings.user_cache_max_entries,
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        )

    async def lookup(self, user_id: str) -> UserSummary | None:
        """Fetch a user, returning None when the directory has no such user.

        Raises:
            DependencyUnavailableError: On timeout, transport error, or a
                non-404 error status.
        """
        hit, cached = self.cache.get(user_id)
        if hit:
            return cached

        try:
            async with self._client() as client:
                response = await client.get(f"/internal/users/{user_id}")
        except httpx.HTTPError as exc:
            raise DependencyUnavailableError(f"user directory request failed: {exc}") from exc

        if response.status_code == HTTP_NOT_FOUND:
            self.cache.put(user_id, None)
            return None
        if response.status_code != HTTP_OK:
            raise DependencyUnavailableError(
                f"user directory responded with {response.status_code}"
            )

        summary = UserSummary.from_payload(response.json())
        self.cache.put(user_id, summary)
        return summary

    async def get_by_id(self, user_id: str) -> UserSummary | None:
        """Best-effort lookup; failures degrade to None."""
        try:
            return await self.lookup(user_id)
        except DependencyUnavailableError as exc:
            logger.warning("Error fetching user %s: %s", user_id, exc)
            return None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, UserSummary | None]:
        """Best-effort lookup of several users concurrently."""
        unique = list(dict.fromkeys(user_ids))
        results = await asyncio.gather(*(self.get_by_id(uid) for uid in unique))
        return dict(zip(unique, results, strict=True))


_user_directory: UserDirectory | None = None


def get_user_directory() -> UserDirectory:
    """Return the process-wide user directory client."""
    global _user_directory
    if _user_directory is None:
        _user_directory = UserDirectory()
    return _user_directory
