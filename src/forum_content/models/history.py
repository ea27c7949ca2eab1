# src/forum_content/models/history.py
"""SQLAlchemy model for per-user post view history."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from forum_content.db.session import Base
from forum_content.db.time import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class ViewHistory(Base):
    """One remembered view of a post by a signed-in user.

    Repeat views inside the de-duplication window refresh ``viewed_at`` on
    the existing row instead of adding another.
    """

    __tablename__ = "view_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_view_history_user_viewed", "user_id", "viewed_at"),
        Index("ix_view_history_user_post", "user_id", "post_id"),
    )
