# src/forum_content/api/v1/endpoints/replies.py
"""Reply endpoints, nested under posts for creation and listing."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from forum_content.api.v1.dependencies import (
    AuthenticatedActorDep,
    CurrentActorDep,
    ReplyServiceDep,
)
from forum_content.core.errors import InvalidRequestError
from forum_content.schemas.common import Pagination
from forum_content.schemas.reply import (
    NestedDeleteRequest,
    ReplyCountsResponse,
    ReplyCreate,
    ReplyListResponse,
    ReplyRecordResponse,
    ReplyResponse,
)
from forum_content.services.reply_service import ReplyListMode

router = APIRouter(tags=["replies"])


@router.get("/posts/{post_id}/replies", response_model=ReplyListResponse)
async def list_replies(
    post_id: str,
    actor: CurrentActorDep,
    service: ReplyServiceDep,
    mode: ReplyListMode = ReplyListMode.TOP,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
    max_depth: Annotated[
        int | None,
        Query(ge=1, description="Nesting levels, clamped to the configured maximum"),
    ] = None,
) -> ReplyListResponse:
    """List a post's replies as top-level pages or as a nested tree."""
    result = service.list_replies(
        post_id,
        actor,
        mode=mode,
        page=page,
        page_size=limit,
        max_depth=max_depth,
    )
    authors = await service.authors_for(result.items)
    return ReplyListResponse(
        items=[ReplyResponse.from_view(v, authors) for v in result.items],
        pagination=Pagination.from_page(result),
    )


@router.post(
    "/posts/{post_id}/replies",
    response_model=ReplyRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    post_id: str,
    payload: ReplyCreate,
    actor: AuthenticatedActorDep,
    service: ReplyServiceDep,
) -> ReplyRecordResponse:
    """Reply to a post or, with ``parent_reply_id``, to another reply."""
    reply = service.create_reply(
        post_id,
        actor,
        payload.content,
        parent_id=payload.parent_reply_id,
        attachments=payload.attachment_refs,
    )
    return ReplyRecordResponse.model_validate(reply)


@router.get("/posts/{post_id}/replies/{reply_id}/children", response_model=ReplyListResponse)
async def list_reply_children(
    post_id: str,
    reply_id: str,
    actor: CurrentActorDep,
    service: ReplyServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> ReplyListResponse:
    """Expand one reply's direct children, oldest first."""
    result = service.list_children(post_id, reply_id, actor, page=page, page_size=limit)
    authors = await service.authors_for(result.items)
    return ReplyListResponse(
        items=[ReplyResponse.from_view(v, authors) for v in result.items],
        pagination=Pagination.from_page(result),
    )


@router.post("/posts/{post_id}/replies/reconcile")
async def reconcile_reply_count(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: ReplyServiceDep,
) -> dict[str, int | str]:
    """Recompute the cached reply counter from the live tree (admin only)."""
    return {"post_id": post_id, "reply_count": service.reconcile_reply_count(post_id, actor)}


@router.get("/replies/counts", response_model=ReplyCountsResponse)
async def get_reply_counts(
    actor: CurrentActorDep,
    service: ReplyServiceDep,
    post_ids: Annotated[str, Query(description="Comma-separated post ids")],
) -> ReplyCountsResponse:
    """Live active-reply counts for several posts."""
    ids = [value.strip() for value in post_ids.split(",") if value.strip()]
    if not ids:
        raise InvalidRequestError("post_ids must name at least one post")
    return ReplyCountsResponse(counts=service.get_reply_counts(ids, actor))


@router.delete("/replies/{reply_id}", response_model=ReplyRecordResponse)
async def delete_reply(
    reply_id: str,
    actor: AuthenticatedActorDep,
    service: ReplyServiceDep,
) -> ReplyRecordResponse:
    """Soft-delete a reply. Its children stay visible."""
    return ReplyRecordResponse.model_validate(service.delete_reply(reply_id, actor))


@router.delete("/replies/{root_id}/nested", response_model=ReplyRecordResponse)
async def delete_nested_reply(
    root_id: str,
    payload: NestedDeleteRequest,
    actor: AuthenticatedActorDep,
    service: ReplyServiceDep,
) -> ReplyRecordResponse:
    """Soft-delete the reply addressed by ``target_path`` below ``root_id``."""
    reply = service.delete_reply_by_path(root_id, payload.target_path, actor)
    return ReplyRecordResponse.model_validate(reply)
