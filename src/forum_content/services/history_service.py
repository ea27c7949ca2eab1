"""Per-user view history: recording views and reading them back."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy.orm import Session

from forum_content.core.errors import ForbiddenError, InvalidRequestError, NotFoundError
from forum_content.core.settings import settings
from forum_content.db.time import utcnow
from forum_content.domain.access_policy import Actor, can_view
from forum_content.domain.reply_tree import Page
from forum_content.models.history import ViewHistory
from forum_content.models.post import Post
from forum_content.repositories.history_repo import ViewHistoryRepository
from forum_content.repositories.post_repo import PostRepository

logger = logging.getLogger(__name__)

__all__ = ["HistoryEntry", "HistoryService", "RecordedView"]


@dataclass(frozen=True)
class HistoryEntry:
    """A history row joined with the published post it points at."""

    entry: ViewHistory
    post: Post


@dataclass(frozen=True)
class RecordedView:
    entry: ViewHistory
    created: bool


class HistoryService:
    """Records post views and serves each user their own history.

    Reads only ever surface published posts, so a post that is later hidden,
    banned or deleted drops out of its viewers' history without any rows
    being removed.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.posts = PostRepository(session)
        self.history = ViewHistoryRepository(session)

    def _ensure_own(self, user_id: str, actor: Actor) -> None:
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required")
        if actor.user_id != user_id:
            raise ForbiddenError("you may only read your own history")

    def record_view(self, post_id: str, actor: Actor) -> RecordedView:
        """Remember that ``actor`` viewed ``post_id``.

        A repeat view inside ``settings.view_dedup_seconds`` refreshes the
        existing row's timestamp rather than adding a new row.
        """
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required")
        post = self.posts.get_by_id(post_id)
        if post is None or not can_view(post, actor.user_id, actor.is_admin):
            raise NotFoundError("post not found")

        now = utcnow()
        since = now - timedelta(seconds=settings.view_dedup_seconds)
        recent = self.history.find_since(actor.user_id, post_id, since)
        if recent is not None:
            recent.viewed_at = now
            self.session.commit()
            return RecordedView(entry=recent, created=False)

        entry = self.history.add(ViewHistory(user_id=actor.user_id, post_id=post_id, viewed_at=now))
        self.session.commit()
        logger.info("View recorded: user %s viewed post %s", actor.user_id, post_id)
        return RecordedView(entry=entry, created=True)

    def list_history(
        self,
        user_id: str,
        actor: Actor,
        *,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[HistoryEntry]:
        """The user's views of currently published posts, most recent first."""
        self._ensure_own(user_id, actor)
        size = limit or settings.history_page_size
        if page < 1 or size < 1:
            raise InvalidRequestError("page and limit must be positive")
        if size > settings.max_page_size:
            raise InvalidRequestError(f"limit may not exceed {settings.max_page_size}")

        rows, total = self.history.list_published(
            user_id, offset=(page - 1) * size, limit=size
        )
        items = [HistoryEntry(entry=entry, post=post) for entry, post in rows]
        return Page(items=items, page=page, page_size=size, total=total)

    def search_history(
        self,
        user_id: str,
        actor: Actor,
        *,
        keyword: str | None = None,
        viewed_on: date | None = None,
    ) -> list[HistoryEntry]:
        """Filter the user's history by a title/body keyword and a UTC view date."""
        self._ensure_own(user_id, actor)
        keyword = (keyword or "").strip() or None
        start = end = None
        if viewed_on is not None:
            start = datetime.combine(viewed_on, time.min, tzinfo=UTC)
            end = start + timedelta(days=1)

        rows = self.history.search_published(user_id, keyword=keyword, start=start, end=end)
        return [HistoryEntry(entry=entry, post=post) for entry, post in rows]
