"""Persistence adapters for posts, replies and view history."""

from .history_repo import ViewHistoryRepository
from .post_repo import PostRepository
from .reply_repo import ReplyRepository

__all__ = ["PostRepository", "ReplyRepository", "ViewHistoryRepository"]
