"""Pydantic schemas for the forum content API."""

from .common import ErrorResponse, Pagination
from .history import (
    HistoryEntryResponse,
    HistoryListResponse,
    HistorySearchResponse,
    ViewRecordRequest,
    ViewRecordResponse,
)
from .post import (
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    PostUpdate,
    StatusChangeRequest,
)
from .reply import (
    NestedDeleteRequest,
    ReplyCountsResponse,
    ReplyCreate,
    ReplyListResponse,
    ReplyRecordResponse,
    ReplyResponse,
)

__all__ = [
    "ErrorResponse",
    "HistoryEntryResponse",
    "HistoryListResponse",
    "HistorySearchResponse",
    "NestedDeleteRequest",
    "Pagination",
    "PostDetailResponse",
    "PostListResponse",
    "PostResponse",
    "PostUpdate",
    "ReplyCountsResponse",
    "ReplyCreate",
    "ReplyListResponse",
    "ReplyRecordResponse",
    "ReplyResponse",
    "StatusChangeRequest",
    "ViewRecordRequest",
    "ViewRecordResponse",
]
