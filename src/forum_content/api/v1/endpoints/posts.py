# src/forum_content/api/v1/endpoints/posts.py
"""Post endpoints: content, status transitions and listings."""

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from forum_content.api.v1.dependencies import (
    AuthenticatedActorDep,
    CurrentActorDep,
    PostServiceDep,
    ReplyServiceDep,
)
from forum_content.clients.file_store import UploadItem
from forum_content.domain.transitions import StatusAction
from forum_content.schemas.common import Pagination
from forum_content.schemas.post import (
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    PostUpdate,
    StatusChangeRequest,
)
from forum_content.schemas.reply import ReplyResponse

router = APIRouter(prefix="/posts", tags=["posts"])


async def _read_uploads(files: list[UploadFile] | None) -> list[UploadItem]:
    items: list[UploadItem] = []
    for upload in files or []:
        items.append(
            UploadItem(
                filename=upload.filename or "file",
                content=await upload.read(),
                content_type=upload.content_type or "application/octet-stream",
            )
        )
    return items


@router.get("/", response_model=PostListResponse)
async def list_posts(
    actor: CurrentActorDep,
    service: PostServiceDep,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> PostListResponse:
    """List posts visible to the caller, newest first."""
    result = service.list_posts(actor, status=status_filter, page=page, limit=limit)
    return PostListResponse(
        items=[PostResponse.model_validate(p) for p in result.items],
        pagination=Pagination.from_page(result),
    )


@router.get("/me/drafts", response_model=PostListResponse)
async def list_my_drafts(
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> PostListResponse:
    """List the caller's unpublished posts."""
    result = service.list_drafts(actor, page=page, limit=limit)
    return PostListResponse(
        items=[PostResponse.model_validate(p) for p in result.items],
        pagination=Pagination.from_page(result),
    )


@router.get("/me/hidden", response_model=PostListResponse)
async def list_my_hidden(
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> PostListResponse:
    """List the caller's hidden posts."""
    result = service.list_hidden(actor, page=page, limit=limit)
    return PostListResponse(
        items=[PostResponse.model_validate(p) for p in result.items],
        pagination=Pagination.from_page(result),
    )


@router.get("/me/top", response_model=list[PostResponse])
async def list_my_top_posts(
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> list[PostResponse]:
    """The caller's published posts with the most replies."""
    return [PostResponse.model_validate(p) for p in service.list_top_posts(actor, limit=limit)]


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    title: Annotated[str, Form(max_length=200)] = "",
    content: Annotated[str, Form(max_length=10_000)] = "",
    publish: Annotated[bool, Form()] = False,
    images: Annotated[list[UploadFile] | None, File()] = None,
    attachments: Annotated[list[UploadFile] | None, File()] = None,
) -> PostResponse:
    """Create a draft or, with ``publish``, a published post."""
    post = await service.create_post(
        actor,
        title=title,
        body=content,
        publish=publish,
        images=await _read_uploads(images),
        attachments=await _read_uploads(attachments),
    )
    return PostResponse.model_validate(post)


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(
    post_id: str,
    actor: CurrentActorDep,
    service: PostServiceDep,
    replies: ReplyServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> PostDetailResponse:
    """Return a post with its newest top-level replies."""
    detail = service.get_post_detail(post_id, actor, page=page, page_size=limit)
    authors = await replies.authors_for(detail.replies.items)
    return PostDetailResponse(
        post=PostResponse.model_validate(detail.post),
        replies=[ReplyResponse.from_view(v, authors) for v in detail.replies.items],
        pagination=Pagination.from_page(detail.replies),
    )


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
) -> PostResponse:
    """Edit title or content and drop file references."""
    post = await service.update_post(
        post_id,
        actor,
        title=payload.title,
        body=payload.content,
        remove_images=set(payload.remove_images),
        remove_attachments=set(payload.remove_attachments),
        expected_version=payload.expected_version,
    )
    return PostResponse.model_validate(post)


@router.post("/{post_id}/files", response_model=PostResponse)
async def add_post_files(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    images: Annotated[list[UploadFile] | None, File()] = None,
    attachments: Annotated[list[UploadFile] | None, File()] = None,
) -> PostResponse:
    """Upload additional images or attachments to a post."""
    post = await service.add_files(
        post_id,
        actor,
        images=await _read_uploads(images),
        attachments=await _read_uploads(attachments),
    )
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
) -> PostResponse:
    """Soft-delete a post."""
    return PostResponse.model_validate(service.delete_post(post_id, actor))


@router.patch("/{post_id}/disable-replies", response_model=PostResponse)
async def disable_replies(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
) -> PostResponse:
    return PostResponse.model_validate(service.set_replies_enabled(post_id, actor, False))


@router.patch("/{post_id}/enable-replies", response_model=PostResponse)
async def enable_replies(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
) -> PostResponse:
    return PostResponse.model_validate(service.set_replies_enabled(post_id, actor, True))


@router.patch("/{post_id}/archive", response_model=PostResponse)
async def toggle_archive(
    post_id: str,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
) -> PostResponse:
    """Archive or unarchive a post."""
    return PostResponse.model_validate(service.archive_toggle(post_id, actor))


@router.patch("/{post_id}/{action}", response_model=PostResponse)
async def change_post_status(
    post_id: str,
    action: StatusAction,
    actor: AuthenticatedActorDep,
    service: PostServiceDep,
    payload: StatusChangeRequest | None = None,
) -> PostResponse:
    """Run a status action: publish, hide, unhide, delete, ban, unban or recover."""
    reason = payload.reason if payload else None
    post = service.transition_status(post_id, action, actor, reason=reason)
    return PostResponse.model_validate(post)
