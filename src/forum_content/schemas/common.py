"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from forum_content.domain.reply_tree import Page


class Pagination(BaseModel):
    """Pagination envelope returned alongside list results."""

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=1)
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_page(cls, page: Page[Any]) -> Pagination:
        return cls(
            page=page.page,
            page_size=page.page_size,
            total=page.total,
            total_pages=page.total_pages,
            has_next_page=page.has_next_page,
            has_prev_page=page.has_prev_page,
        )


class ErrorBody(BaseModel):
    message: str
    status_code: int
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Envelope used for every domain error response."""

    success: bool = False
    error: ErrorBody
