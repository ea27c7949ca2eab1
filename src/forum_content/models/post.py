# src/forum_content/models/post.py
"""SQLAlchemy model for forum posts and their lifecycle status."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_content.db.session import Base
from forum_content.db.time import utcnow

TITLE_MAX_LENGTH = 200
BODY_MAX_LENGTH = 10_000


class PostStatus(str, Enum):
    """Lifecycle states a post moves through."""

    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"
    HIDDEN = "hidden"
    BANNED = "banned"
    DELETED = "deleted"


def _new_id() -> str:
    return str(uuid.uuid4())


class Post(Base):
    """Primary content entity produced by users.

    ``status`` is only ever written by the transition handler in
    ``forum_content.domain.transitions``; content edits never touch it.
    """

    __tablename__ = "post"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PostStatus.UNPUBLISHED.value,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_refs: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    attachment_refs: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    replies_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    # Cache only; the live reply tree is authoritative.
    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Optimistic concurrency token, bumped by every UPDATE.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    banned_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    banned_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version}


def status_value(status: str | PostStatus) -> str:
    """Return the plain string stored for ``status``."""
    return status.value if isinstance(status, PostStatus) else status
