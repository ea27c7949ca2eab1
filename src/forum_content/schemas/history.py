# src/forum_content/schemas/history.py
"""View-history Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from forum_content.schemas.common import Pagination
from forum_content.services.history_service import HistoryEntry


class ViewRecordRequest(BaseModel):
    """Schema for recording a post view."""

    post_id: str = Field(..., min_length=1)


class HistoryPostSummary(BaseModel):
    id: str
    title: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HistoryEntryResponse(BaseModel):
    """One remembered view, with a summary of the viewed post when known."""

    id: str
    user_id: str
    post_id: str
    viewed_at: datetime
    post: HistoryPostSummary | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entry(cls, item: HistoryEntry) -> HistoryEntryResponse:
        entry = item.entry
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            post_id=entry.post_id,
            viewed_at=entry.viewed_at,
            post=HistoryPostSummary.model_validate(item.post),
        )


class ViewRecordResponse(BaseModel):
    message: str
    history: HistoryEntryResponse


class HistoryListResponse(BaseModel):
    """A page of the caller's view history."""

    items: list[HistoryEntryResponse]
    pagination: Pagination


class HistorySearchResponse(BaseModel):
    items: list[HistoryEntryResponse]
