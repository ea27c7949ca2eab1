"""Service layer for the forum content application."""

from .history_service import HistoryEntry, HistoryService, RecordedView
from .post_service import PostDetail, PostService
from .reply_service import ReplyListMode, ReplyService

__all__ = [
    "HistoryEntry",
    "HistoryService",
    "PostDetail",
    "PostService",
    "RecordedView",
    "ReplyListMode",
    "ReplyService",
]
