"""Data access helpers for working with replies."""
from __future__ import annotations

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from forum_content.models.reply import Reply

__all__ = ["ReplyRepository"]


class ReplyRepository:
    """Thin wrapper around database access for reply rows."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, reply_id: str) -> Reply | None:
        """Return a reply by identifier."""
        return self.session.get(Reply, reply_id)

    def list_for_post(self, post_id: str) -> list[Reply]:
        """Return every reply of a post, active or not, in creation order."""
        result = self.session.execute(
            select(Reply)
            .where(Reply.post_id == post_id)
            .order_by(Reply.created_at, Reply.order_index)
        )
        return list(result.scalars())

    def list_for_posts(self, post_ids: Collection[str]) -> list[Reply]:
        """Return every reply belonging to any of ``post_ids``."""
        if not post_ids:
            return []
        result = self.session.execute(
            select(Reply)
            .where(Reply.post_id.in_(list(post_ids)))
            .order_by(Reply.created_at, Reply.order_index)
        )
        return list(result.scalars())

    def get_top_level(self, post_id: str, *, offset: int, limit: int) -> list[Reply]:
        """Return active top-level replies of a post, newest first."""
        result = self.session.execute(
            select(Reply)
            .where(
                Reply.post_id == post_id,
                Reply.parent_reply_id.is_(None),
                Reply.is_active.is_(True),
            )
            .order_by(Reply.created_at.desc(), Reply.order_index.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars())

    def get_children(self, parent_id: str, *, offset: int, limit: int) -> list[Reply]:
        """Return active direct children of a reply, oldest first."""
        result = self.session.execute(
            select(Reply)
            .where(Reply.parent_reply_id == parent_id, Reply.is_active.is_(True))
            .order_by(Reply.created_at, Reply.order_index)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars())

    def next_order_index(self, post_id: str) -> int:
        """Return the next creation-order tie breaker for a post."""
        current = self.session.scalar(
            select(func.max(Reply.order_index)).where(Reply.post_id == post_id)
        )
        return int(current or 0) + 1

    def add(self, reply: Reply) -> Reply:
        """Insert a new reply and return the persisted ORM instance."""
        self.session.add(reply)
        self.session.flush()
        return reply

    def lock_if_active(self, reply_id: str) -> bool:
        """Write-lock the reply row for this transaction iff it is still active.

        The guarded no-op UPDATE holds the row until commit, so a concurrent
        ``mark_inactive`` either lands first (and this returns False) or waits.
        """
        stmt = (
            update(Reply)
            .where(Reply.id == reply_id, Reply.is_active.is_(True))
            .values(is_active=True)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def mark_inactive(self, reply_id: str, *, deleted_by: str | None, now: datetime) -> bool:
        """Flip ``is_active`` to false iff the reply is still active.

        Returns:
            True when this call performed the flip.
        """
        stmt = (
            update(Reply)
            .where(Reply.id == reply_id, Reply.is_active.is_(True))
            .values(is_active=False, deleted_at=now, deleted_by=deleted_by)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
