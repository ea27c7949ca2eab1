"""SQLAlchemy models for the forum content service."""

from .history import ViewHistory
from .post import Post, PostStatus
from .reply import Reply

__all__ = ["Post", "PostStatus", "Reply", "ViewHistory"]
