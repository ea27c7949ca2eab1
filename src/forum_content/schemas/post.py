# src/forum_content/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from forum_content.models.post import BODY_MAX_LENGTH, TITLE_MAX_LENGTH
from forum_content.schemas.common import Pagination
from forum_content.schemas.reply import ReplyResponse


class PostUpdate(BaseModel):
    """Schema for editing a post's content."""

    title: str | None = Field(None, max_length=TITLE_MAX_LENGTH)
    content: str | None = Field(None, max_length=BODY_MAX_LENGTH)
    remove_images: list[str] = Field(default_factory=list)
    remove_attachments: list[str] = Field(default_factory=list)
    expected_version: int | None = Field(
        None,
        description="Version the client last read; a mismatch is rejected with 409",
    )


class StatusChangeRequest(BaseModel):
    """Optional body for status endpoints."""

    reason: str | None = Field(None, max_length=1000, description="Recorded on ban")


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    owner_id: str
    status: str
    title: str
    content: str = Field(validation_alias=AliasChoices("body", "content"))
    image_refs: list[str]
    attachment_refs: list[str]
    replies_disabled: bool
    is_archived: bool
    reply_count: int
    version: int
    created_at: datetime
    modified_at: datetime
    banned_at: datetime | None = None
    banned_by: str | None = None
    banned_reason: str | None = None
    deleted_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PostListResponse(BaseModel):
    """A page of posts."""

    items: list[PostResponse]
    pagination: Pagination


class PostDetailResponse(BaseModel):
    """A post with the first page of its top-level replies."""

    post: PostResponse
    replies: list[ReplyResponse]
    pagination: Pagination
