"""Post orchestration: content writes, status transitions and listings."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from forum_content.clients.file_store import FileStore, UploadItem
from forum_content.core.errors import (
    ConflictError,
    DependencyUnavailableError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from forum_content.core.settings import settings
from forum_content.db.time import utcnow
from forum_content.domain.access_policy import (
    Actor,
    build_listing_filter,
    can_modify,
    can_view,
    is_owner,
)
from forum_content.domain.reply_tree import Page, ReplyView
from forum_content.domain.transitions import (
    ActorClass,
    StatusAction,
    apply_transition,
    check_publishable,
    validate_transition,
)
from forum_content.models.post import BODY_MAX_LENGTH, TITLE_MAX_LENGTH, Post, PostStatus
from forum_content.repositories.post_repo import PostRepository
from forum_content.services.reply_service import ReplyService

logger = logging.getLogger(__name__)

__all__ = ["PostDetail", "PostService"]


@dataclass(frozen=True)
class PostDetail:
    """A post together with the first page of its replies."""

    post: Post
    replies: Page[ReplyView]


def _validate_content(title: str | None, body: str | None) -> None:
    if title is not None and len(title) > TITLE_MAX_LENGTH:
        raise InvalidRequestError(f"title may not exceed {TITLE_MAX_LENGTH} characters")
    if body is not None and len(body) > BODY_MAX_LENGTH:
        raise InvalidRequestError(f"body may not exceed {BODY_MAX_LENGTH} characters")


class PostService:
    """Applies access policy and the status engine to persisted posts."""

    def __init__(
        self,
        session: Session,
        file_store: FileStore | None = None,
        reply_service: ReplyService | None = None,
    ) -> None:
        self.session = session
        self.posts = PostRepository(session)
        self.file_store = file_store or FileStore()
        self.reply_service = reply_service or ReplyService(session)

    # Helpers

    def _load(self, post_id: str) -> Post:
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("post not found")
        return post

    def _load_modifiable(self, post_id: str, actor: Actor) -> Post:
        post = self._load(post_id)
        if not can_modify(post, actor.user_id, actor.is_admin):
            raise ForbiddenError("you do not have permission to modify this post")
        return post

    def _commit(self, post: Post) -> Post:
        self.posts.save(post)
        self.session.commit()
        return post

    async def _upload_all(
        self,
        post_id: str,
        images: Sequence[UploadItem],
        attachments: Sequence[UploadItem],
    ) -> tuple[list[str], list[str]]:
        image_urls = await self.file_store.upload(images, post_id, "image")
        try:
            attachment_urls = await self.file_store.upload(attachments, post_id, "attachment")
        except DependencyUnavailableError:
            await self.file_store.delete(image_urls)
            raise
        return image_urls, attachment_urls

    # Content

    async def create_post(
        self,
        actor: Actor,
        *,
        title: str = "",
        body: str = "",
        publish: bool = False,
        images: Sequence[UploadItem] = (),
        attachments: Sequence[UploadItem] = (),
    ) -> Post:
        """Create a draft, or a published post when ``publish`` is set.

        Files are uploaded before the row is written; if anything fails
        afterwards the uploaded files are deleted again.
        """
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required to create posts")
        title = (title or "").strip()
        body = (body or "").strip()
        _validate_content(title, body)

        status = PostStatus.UNPUBLISHED.value
        if publish:
            completeness = check_publishable(title, body)
            if not completeness.allowed:
                raise InvalidRequestError(completeness.reason or "post is incomplete")
            decision = validate_transition(status, PostStatus.PUBLISHED, ActorClass.OWNER)
            if not decision.allowed:
                raise ForbiddenError(decision.reason or "transition denied")
            status = PostStatus.PUBLISHED.value

        post_id = str(uuid.uuid4())
        image_urls, attachment_urls = await self._upload_all(post_id, images, attachments)

        now = utcnow()
        post = Post(
            id=post_id,
            owner_id=actor.user_id,
            status=status,
            title=title,
            body=body,
            image_refs=image_urls,
            attachment_refs=attachment_urls,
            created_at=now,
            modified_at=now,
        )
        try:
            self.posts.add(post)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            await self.file_store.delete(image_urls + attachment_urls)
            logger.error("Failed to persist post %s: %s", post_id, exc)
            raise DependencyUnavailableError("post storage is unavailable") from exc

        logger.info("Post %s created by %s with status %s", post_id, actor.user_id, status)
        return post

    async def update_post(
        self,
        post_id: str,
        actor: Actor,
        *,
        title: str | None = None,
        body: str | None = None,
        remove_images: Collection[str] = (),
        remove_attachments: Collection[str] = (),
        expected_version: int | None = None,
    ) -> Post:
        """Edit the content of a post the actor owns.

        Raises:
            ConflictError: ``expected_version`` is stale or a concurrent write
                landed first.
        """
        post = self._load_modifiable(post_id, actor)
        if expected_version is not None and expected_version != post.version:
            raise ConflictError("post was modified concurrently; reload and retry")

        new_title = title.strip() if title is not None else post.title
        new_body = body.strip() if body is not None else post.body
        _validate_content(new_title, new_body)
        if post.status == PostStatus.PUBLISHED.value:
            completeness = check_publishable(new_title, new_body)
            if not completeness.allowed:
                raise InvalidRequestError(completeness.reason or "post is incomplete")

        removed = [url for url in post.image_refs if url in remove_images]
        removed += [url for url in post.attachment_refs if url in remove_attachments]

        post.title = new_title
        post.body = new_body
        post.image_refs = [url for url in post.image_refs if url not in remove_images]
        post.attachment_refs = [
            url for url in post.attachment_refs if url not in remove_attachments
        ]
        post.modified_at = utcnow()
        self._commit(post)

        await self.file_store.delete(removed)
        return post

    async def add_files(
        self,
        post_id: str,
        actor: Actor,
        *,
        images: Sequence[UploadItem] = (),
        attachments: Sequence[UploadItem] = (),
    ) -> Post:
        """Upload more files and append their URLs to the post."""
        post = self._load_modifiable(post_id, actor)
        image_urls, attachment_urls = await self._upload_all(post_id, images, attachments)

        post.image_refs = [*post.image_refs, *image_urls]
        post.attachment_refs = [*post.attachment_refs, *attachment_urls]
        post.modified_at = utcnow()
        try:
            self._commit(post)
        except ConflictError:
            await self.file_store.delete(image_urls + attachment_urls)
            raise
        return post

    def archive_toggle(self, post_id: str, actor: Actor) -> Post:
        """Flip the archived flag; archived posts accept no new replies."""
        post = self._load_modifiable(post_id, actor)
        post.is_archived = not post.is_archived
        post.modified_at = utcnow()
        return self._commit(post)

    def set_replies_enabled(self, post_id: str, actor: Actor, enabled: bool) -> Post:
        """Allow or refuse new replies on a published post the actor owns."""
        post = self._load(post_id)
        if not is_owner(post, actor.user_id):
            raise ForbiddenError("only the owner can change reply settings")
        if post.status != PostStatus.PUBLISHED.value:
            raise ForbiddenError("replies can only be toggled on published posts")
        post.replies_disabled = not enabled
        post.modified_at = utcnow()
        return self._commit(post)

    # Status

    def delete_post(self, post_id: str, actor: Actor) -> Post:
        """Soft-delete a post. Owners and admins may ask; the owner table decides."""
        post = self._load(post_id)
        if not (is_owner(post, actor.user_id) or actor.is_admin):
            raise ForbiddenError("you do not have permission to delete this post")
        return self._transition(post, StatusAction.DELETE, actor)

    def transition_status(
        self,
        post_id: str,
        action: StatusAction | str,
        actor: Actor,
        reason: str | None = None,
    ) -> Post:
        """Run a named status action on behalf of ``actor``.

        Owner actions (publish, hide, unhide, delete) require ownership;
        admin actions (ban, unban, recover) require the admin role. The
        engine's denial reason is raised verbatim as :class:`ForbiddenError`.
        """
        try:
            action = StatusAction(action)
        except ValueError as exc:
            raise InvalidRequestError(f"unknown status action: {action}") from exc

        post = self._load(post_id)
        if action.actor_class is ActorClass.ADMIN:
            if not actor.is_admin:
                raise ForbiddenError("admin privileges required")
        elif not is_owner(post, actor.user_id):
            raise ForbiddenError("only the owner can change the status of this post")
        return self._transition(post, action, actor, reason)

    def _transition(
        self,
        post: Post,
        action: StatusAction,
        actor: Actor,
        reason: str | None = None,
    ) -> Post:
        target = action.target
        if action.actor_class is ActorClass.OWNER and target == PostStatus.PUBLISHED.value:
            completeness = check_publishable(post.title, post.body)
            if not completeness.allowed:
                raise InvalidRequestError(completeness.reason or "post is incomplete")

        decision = validate_transition(post.status, target, action.actor_class)
        if not decision.allowed:
            raise ForbiddenError(decision.reason or "transition denied")

        expected_status = post.status
        fields = apply_transition(
            expected_status,
            target,
            actor_id=actor.user_id or "",
            now=utcnow(),
            reason=reason,
        )
        won = self.posts.conditional_update_status(
            post.id,
            expected_status=expected_status,
            expected_version=post.version,
            fields=fields,
        )
        self.session.commit()
        post = self.posts.refresh(post)

        if won:
            logger.info(
                "Post %s moved %s -> %s by %s", post.id, expected_status, target, actor.user_id
            )
            return post
        if post.status == target:
            logger.info("Post %s already %s; %s is a no-op", post.id, target, action.value)
            return post
        raise ConflictError("post status changed concurrently; reload and retry")

    # Queries

    def get_post(self, post_id: str, actor: Actor) -> Post:
        """Return a post the actor may view; invisible posts read as missing."""
        post = self._load(post_id)
        if not can_view(post, actor.user_id, actor.is_admin):
            raise NotFoundError("post not found")
        return post

    def get_post_detail(
        self,
        post_id: str,
        actor: Actor,
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> PostDetail:
        """Return a post with its top-level replies.

        Replies degrade to an empty page when reply storage is unavailable.
        """
        post = self.get_post(post_id, actor)
        size = page_size or settings.replies_page_size
        try:
            replies = self.reply_service.list_replies(
                post_id, actor, page=page, page_size=size
            )
        except DependencyUnavailableError as exc:
            logger.warning("Serving post %s without replies: %s", post_id, exc)
            replies = Page(items=[], page=page, page_size=size, total=0)
        return PostDetail(post=post, replies=replies)

    def _paging(self, page: int, limit: int | None, default: int) -> tuple[int, int]:
        size = limit or default
        if page < 1 or size < 1:
            raise InvalidRequestError("page and limit must be positive")
        if size > settings.max_page_size:
            raise InvalidRequestError(f"limit may not exceed {settings.max_page_size}")
        return (page - 1) * size, size

    def list_posts(
        self,
        actor: Actor,
        *,
        status: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[Post]:
        """General listing, filtered to the statuses the actor may list."""
        if status is not None and status not in {s.value for s in PostStatus}:
            raise InvalidRequestError(f"unknown post status: {status}")
        offset, size = self._paging(page, limit, settings.posts_page_size)
        statuses = build_listing_filter(actor.user_id, actor.is_admin, status)
        items, total = self.posts.list_by_statuses(statuses, offset=offset, limit=size)
        return Page(items=items, page=page, page_size=size, total=total)

    def list_drafts(self, actor: Actor, *, page: int = 1, limit: int | None = None) -> Page[Post]:
        """The actor's own unpublished posts."""
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required")
        offset, size = self._paging(page, limit, settings.posts_page_size)
        items, total = self.posts.list_drafts(actor.user_id, offset=offset, limit=size)
        return Page(items=items, page=page, page_size=size, total=total)

    def list_hidden(self, actor: Actor, *, page: int = 1, limit: int | None = None) -> Page[Post]:
        """The actor's own hidden posts, which public listings never show."""
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required")
        offset, size = self._paging(page, limit, settings.posts_page_size)
        items, total = self.posts.list_by_owner_and_status(
            actor.user_id, PostStatus.HIDDEN, offset=offset, limit=size
        )
        return Page(items=items, page=page, page_size=size, total=total)

    def list_top_posts(self, actor: Actor, *, limit: int | None = None) -> list[Post]:
        """The actor's published posts with the most replies."""
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required")
        size = limit or settings.top_posts_max
        if size < 1 or size > settings.top_posts_max:
            raise InvalidRequestError(f"limit must be between 1 and {settings.top_posts_max}")
        posts = self.posts.list_published_by_owner(actor.user_id)
        posts.sort(key=lambda p: (p.reply_count, p.created_at), reverse=True)
        return posts[:size]
