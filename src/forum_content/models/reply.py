# src/forum_content/models/reply.py
"""SQLAlchemy model for replies stored as a flat table with parent pointers."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_content.db.session import Base
from forum_content.db.time import utcnow

REPLY_BODY_MAX_LENGTH = 5_000


def _new_id() -> str:
    return str(uuid.uuid4())


class Reply(Base):
    """A comment on a post, optionally nested under another reply.

    Rows are never hard-deleted and their content never changes after
    creation; only ``is_active`` and the deletion metadata are written later.
    """

    __tablename__ = "reply"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Top-level replies have parent_reply_id = NULL.
    parent_reply_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("reply.id"),
        nullable=True,
        index=True,
    )
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_refs: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Creation-order tie breaker for replies sharing a timestamp.
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_reply_post_created", "post_id", "created_at"),
        Index("ix_reply_post_parent", "post_id", "parent_reply_id"),
    )
