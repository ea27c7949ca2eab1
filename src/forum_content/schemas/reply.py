# src/forum_content/schemas/reply.py
"""Reply-related Pydantic schemas."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from forum_content.clients.user_directory import UserSummary
from forum_content.domain.reply_tree import ReplyView
from forum_content.models.reply import REPLY_BODY_MAX_LENGTH
from forum_content.schemas.common import Pagination


class ReplyCreate(BaseModel):
    """Schema for creating a reply."""

    content: str = Field(..., min_length=1, max_length=REPLY_BODY_MAX_LENGTH)
    parent_reply_id: str | None = Field(None, description="Reply to nest under")
    attachment_refs: list[str] = Field(default_factory=list)


class NestedDeleteRequest(BaseModel):
    """Index path from a root reply down to the reply to delete."""

    target_path: list[int] = Field(..., min_length=1)


class AuthorResponse(BaseModel):
    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ReplyResponse(BaseModel):
    """A visible reply, with nested children in tree mode."""

    id: str
    post_id: str
    parent_reply_id: str | None
    author_id: str
    author: AuthorResponse | None = None
    content: str
    attachment_refs: list[str]
    is_active: bool
    created_at: datetime
    child_count: int = 0
    depth: int = 0
    children: list[ReplyResponse] = Field(default_factory=list)

    @classmethod
    def from_view(
        cls,
        view: ReplyView,
        authors: Mapping[str, UserSummary | None] | None = None,
    ) -> ReplyResponse:
        authors = authors or {}
        order: list[ReplyView] = []
        stack = [view]
        while stack:
            current = stack.pop()
            order.append(current)
            stack.extend(current.children)

        # Children precede their parent when walking the pre-order backwards.
        built: dict[str, ReplyResponse] = {}
        for current in reversed(order):
            node = current.node
            summary = authors.get(node.author_id)
            built[node.id] = cls(
                id=node.id,
                post_id=node.post_id,
                parent_reply_id=node.parent_id,
                author_id=node.author_id,
                author=AuthorResponse.model_validate(summary) if summary else None,
                content=node.body,
                attachment_refs=list(node.attachment_refs),
                is_active=node.is_active,
                created_at=node.created_at,
                child_count=current.child_count,
                depth=current.depth,
                children=[built.pop(child.node.id) for child in current.children],
            )
        return built[view.node.id]


class ReplyRecordResponse(BaseModel):
    """A persisted reply row as returned by create and delete."""

    id: str
    post_id: str
    parent_reply_id: str | None
    author_id: str
    content: str = Field(validation_alias=AliasChoices("body", "content"))
    attachment_refs: list[str]
    is_active: bool
    created_at: datetime
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ReplyListResponse(BaseModel):
    """A page of replies."""

    items: list[ReplyResponse]
    pagination: Pagination


class ReplyCountsResponse(BaseModel):
    counts: dict[str, int]
