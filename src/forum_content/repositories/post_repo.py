"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Collection
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from forum_content.core.errors import ConflictError
from forum_content.models.post import Post, PostStatus, status_value

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: str) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def refresh(self, post: Post) -> Post:
        """Reload ``post`` from the database, discarding cached attributes."""
        self.session.refresh(post)
        return post

    def add(self, post: Post) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        self.session.add(post)
        self.session.flush()
        return post

    def save(self, post: Post) -> Post:
        """Flush pending changes, enforcing the optimistic version check.

        Raises:
            ConflictError: If another writer updated the row since it was read.
        """
        try:
            self.session.flush()
        except StaleDataError as exc:
            self.session.rollback()
            raise ConflictError("post was modified concurrently; reload and retry") from exc
        return post

    def conditional_update_status(
        self,
        post_id: str,
        *,
        expected_status: str,
        expected_version: int,
        fields: dict[str, Any],
    ) -> bool:
        """Apply ``fields`` iff the row still has the expected status and version.

        Returns:
            True when this call won the update, False when the row changed.
        """
        stmt = (
            update(Post)
            .where(
                Post.id == post_id,
                Post.status == expected_status,
                Post.version == expected_version,
            )
            .values(**fields, version=Post.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1

    def increment_reply_count(self, post_id: str, delta: int) -> bool:
        """Atomically adjust the denormalized reply counter."""
        stmt = (
            update(Post)
            .where(Post.id == post_id)
            .values(reply_count=Post.reply_count + delta)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def set_reply_count(self, post_id: str, count: int) -> bool:
        """Overwrite the denormalized reply counter with a recomputed value."""
        stmt = (
            update(Post)
            .where(Post.id == post_id)
            .values(reply_count=count)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def list_by_statuses(
        self,
        statuses: Collection[str],
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Post], int]:
        """Return one page of posts in ``statuses`` (newest first) and the total."""
        if not statuses:
            return [], 0
        condition = Post.status.in_(list(statuses))
        total = self.session.scalar(select(func.count()).select_from(Post).where(condition)) or 0
        result = self.session.execute(
            select(Post)
            .where(condition)
            .order_by(Post.created_at.desc(), Post.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars()), int(total)

    def list_by_owner_and_status(
        self,
        owner_id: str,
        status: str | PostStatus,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Post], int]:
        """Return one page of the owner's posts in ``status``, most recently modified first."""
        condition = (Post.owner_id == owner_id) & (Post.status == status_value(status))
        total = self.session.scalar(select(func.count()).select_from(Post).where(condition)) or 0
        result = self.session.execute(
            select(Post)
            .where(condition)
            .order_by(Post.modified_at.desc(), Post.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars()), int(total)

    def list_drafts(self, owner_id: str, *, offset: int, limit: int) -> tuple[list[Post], int]:
        """Return the owner's unpublished posts."""
        return self.list_by_owner_and_status(
            owner_id, PostStatus.UNPUBLISHED, offset=offset, limit=limit
        )

    def list_published_by_owner(self, owner_id: str) -> list[Post]:
        """Return every published post created by ``owner_id``."""
        result = self.session.execute(
            select(Post).where(
                Post.owner_id == owner_id,
                Post.status == PostStatus.PUBLISHED.value,
            )
        )
        return list(result.scalars())
