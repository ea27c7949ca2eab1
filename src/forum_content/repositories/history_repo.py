"""Data access helpers for per-user view history."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from forum_content.models.history import ViewHistory
from forum_content.models.post import Post, PostStatus

__all__ = ["ViewHistoryRepository"]


class ViewHistoryRepository:
    """Thin wrapper around database access for view history rows."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def find_since(self, user_id: str, post_id: str, since: datetime) -> ViewHistory | None:
        """Return the user's latest view of ``post_id`` at or after ``since``."""
        result = self.session.execute(
            select(ViewHistory)
            .where(
                ViewHistory.user_id == user_id,
                ViewHistory.post_id == post_id,
                ViewHistory.viewed_at >= since,
            )
            .order_by(ViewHistory.viewed_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    def add(self, entry: ViewHistory) -> ViewHistory:
        """Stage a new history row and flush it."""
        self.session.add(entry)
        self.session.flush()
        return entry

    def _published_for(self, user_id: str) -> Select[tuple[ViewHistory, Post]]:
        return (
            select(ViewHistory, Post)
            .join(Post, Post.id == ViewHistory.post_id)
            .where(
                ViewHistory.user_id == user_id,
                Post.status == PostStatus.PUBLISHED.value,
            )
        )

    def list_published(
        self,
        user_id: str,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[tuple[ViewHistory, Post]], int]:
        """Return one page of the user's views of published posts, newest first."""
        stmt = self._published_for(user_id)
        total = self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = self.session.execute(
            stmt.order_by(ViewHistory.viewed_at.desc(), ViewHistory.id).offset(offset).limit(limit)
        )
        return [(entry, post) for entry, post in result], int(total)

    def search_published(
        self,
        user_id: str,
        *,
        keyword: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[tuple[ViewHistory, Post]]:
        """Return the user's views of published posts matching every given filter.

        ``keyword`` matches title or body case-insensitively; ``start`` is
        inclusive and ``end`` exclusive.
        """
        stmt = self._published_for(user_id)
        if keyword:
            stmt = stmt.where(
                or_(
                    Post.title.icontains(keyword, autoescape=True),
                    Post.body.icontains(keyword, autoescape=True),
                )
            )
        if start is not None:
            stmt = stmt.where(ViewHistory.viewed_at >= start)
        if end is not None:
            stmt = stmt.where(ViewHistory.viewed_at < end)
        result = self.session.execute(stmt.order_by(ViewHistory.viewed_at.desc(), ViewHistory.id))
        return [(entry, post) for entry, post in result]
