"""Reply orchestration: creation, soft deletion, listing and counters.

The reply table is the source of truth. Each operation rebuilds the post's
:class:`~forum_content.domain.reply_tree.ReplyTree` from the flat rows, lets
the tree decide, and persists through :class:`ReplyRepository`. The
denormalized ``post.reply_count`` is adjusted in its own transaction after the
reply write commits; a failed adjustment is replaced by a recount of the active
replies, and :meth:`ReplyService.reconcile_reply_count` remains for admins.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from forum_content.clients.user_directory import UserDirectory, UserSummary
from forum_content.core.errors import (
    DependencyUnavailableError,
    ForbiddenError,
    ForumError,
    InvalidRequestError,
    NotFoundError,
    ParentInactiveError,
    ParentPostMismatchError,
    TargetNotFoundError,
)
from forum_content.core.settings import settings
from forum_content.db.time import utcnow
from forum_content.domain.access_policy import Actor, can_delete_reply, can_view
from forum_content.domain.reply_tree import Page, ReplyNode, ReplyTree, ReplyView
from forum_content.models.post import Post, PostStatus
from forum_content.models.reply import REPLY_BODY_MAX_LENGTH, Reply
from forum_content.repositories.post_repo import PostRepository
from forum_content.repositories.reply_repo import ReplyRepository

logger = logging.getLogger(__name__)

__all__ = ["ReplyListMode", "ReplyService"]


class ReplyListMode(str, Enum):
    """How a post's replies are materialized."""

    TOP = "top"
    TREE = "tree"


class ReplyService:
    """Coordinates reply persistence with the in-memory reply tree."""

    def __init__(self, session: Session, user_directory: UserDirectory | None = None) -> None:
        self.session = session
        self.posts = PostRepository(session)
        self.replies = ReplyRepository(session)
        self.user_directory = user_directory

    # Loading

    def _load_post(self, post_id: str) -> Post:
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("post not found")
        return post

    def _load_visible_post(self, post_id: str, actor: Actor) -> Post:
        post = self._load_post(post_id)
        if not can_view(post, actor.user_id, actor.is_admin):
            raise NotFoundError("post not found")
        return post

    def _load_tree(self, post_id: str) -> ReplyTree:
        try:
            records = self.replies.list_for_post(post_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load replies for post %s: %s", post_id, exc)
            raise DependencyUnavailableError("reply storage is unavailable") from exc
        return ReplyTree.from_records(post_id, records)

    def _page_size(self, page_size: int | None) -> int:
        size = page_size or settings.replies_page_size
        if size > settings.max_page_size:
            raise InvalidRequestError(f"page size may not exceed {settings.max_page_size}")
        return size

    # Counter maintenance

    def _adjust_counter(self, post_id: str, delta: int) -> None:
        try:
            self.posts.increment_reply_count(post_id, delta)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning(
                "Failed to adjust reply count of post %s by %d, recounting",
                post_id,
                delta,
                exc_info=True,
            )
        else:
            return

        try:
            self._write_live_count(post_id)
        except (SQLAlchemyError, ForumError):
            self.session.rollback()
            logger.exception("Failed to recount replies of post %s", post_id)

    def _write_live_count(self, post_id: str) -> int:
        live = self._load_tree(post_id).count_active()
        self.posts.set_reply_count(post_id, live)
        self.session.commit()
        return live

    # Commands

    def create_reply(
        self,
        post_id: str,
        actor: Actor,
        body: str,
        *,
        parent_id: str | None = None,
        attachments: Sequence[str] = (),
    ) -> Reply:
        """Create a reply on a published post, optionally nested under ``parent_id``.

        Raises:
            NotFoundError: The post does not exist.
            ForbiddenError: The post does not accept replies or the caller is
                anonymous.
            InvalidRequestError: The body is empty or too long, or the parent
                is inactive or belongs to another post.
            ParentNotFoundError: The parent reply does not exist.
        """
        if not actor.is_authenticated:
            raise ForbiddenError("authentication required to reply")

        text = (body or "").strip()
        if not text:
            raise InvalidRequestError("reply body is required")
        if len(text) > REPLY_BODY_MAX_LENGTH:
            raise InvalidRequestError(
                f"reply body may not exceed {REPLY_BODY_MAX_LENGTH} characters"
            )

        post = self._load_post(post_id)
        if post.status != PostStatus.PUBLISHED.value:
            raise ForbiddenError("replies are only allowed on published posts")
        if post.replies_disabled:
            raise ForbiddenError("replies are disabled for this post")
        if post.is_archived:
            raise ForbiddenError("post is archived")

        tree = self._load_tree(post_id)
        if parent_id is not None and parent_id not in tree:
            if self.replies.get_by_id(parent_id) is not None:
                raise ParentPostMismatchError(
                    f"parent reply {parent_id} belongs to a different post"
                )

        node = ReplyNode(
            id=str(uuid.uuid4()),
            post_id=post_id,
            parent_id=parent_id,
            author_id=actor.user_id or "",
            body=text,
            created_at=utcnow(),
            attachment_refs=list(attachments),
            order_index=self.replies.next_order_index(post_id),
        )
        tree.insert(parent_id, node)
        # The tree is a snapshot; confirm the parent inside this transaction.
        if parent_id is not None and not self.replies.lock_if_active(parent_id):
            self.session.rollback()
            raise ParentInactiveError(f"parent reply {parent_id} is not active")

        reply = Reply(
            id=node.id,
            post_id=post_id,
            parent_reply_id=node.parent_id,
            author_id=node.author_id,
            body=node.body,
            attachment_refs=node.attachment_refs,
            order_index=node.order_index,
            created_at=node.created_at,
        )
        self.replies.add(reply)
        self.session.commit()
        logger.info("Reply %s created on post %s by %s", reply.id, post_id, actor.user_id)

        self._adjust_counter(post_id, 1)
        return reply

    def _deactivate(self, post_id: str, reply_id: str, actor: Actor) -> bool:
        flipped = self.replies.mark_inactive(reply_id, deleted_by=actor.user_id, now=utcnow())
        self.session.commit()
        if flipped:
            logger.info("Reply %s on post %s deleted by %s", reply_id, post_id, actor.user_id)
            self._adjust_counter(post_id, -1)
        return flipped

    def _ensure_can_delete(self, author_id: str, post_id: str, actor: Actor) -> None:
        post = self.posts.get_by_id(post_id)
        owner_id = post.owner_id if post is not None else None
        if not can_delete_reply(author_id, owner_id, actor.user_id, actor.is_admin):
            raise ForbiddenError("you do not have permission to delete this reply")

    def delete_reply(self, reply_id: str, actor: Actor) -> Reply:
        """Soft-delete a reply by id. Deleting an inactive reply is a no-op."""
        reply = self.replies.get_by_id(reply_id)
        if reply is None:
            raise TargetNotFoundError(f"reply {reply_id} not found")
        self._ensure_can_delete(reply.author_id, reply.post_id, actor)
        self._deactivate(reply.post_id, reply.id, actor)
        return reply

    def delete_reply_by_path(
        self,
        root_reply_id: str,
        path: Sequence[int],
        actor: Actor,
    ) -> Reply:
        """Soft-delete the reply reached by following ``path`` from ``root_reply_id``.

        Each index selects a child of the current reply, counting inactive
        children too.
        """
        root = self.replies.get_by_id(root_reply_id)
        if root is None:
            raise TargetNotFoundError(f"reply {root_reply_id} not found")
        tree = self._load_tree(root.post_id)
        target = tree.resolve_path(root_reply_id, path)
        self._ensure_can_delete(target.author_id, root.post_id, actor)
        self._deactivate(root.post_id, target.id, actor)
        reply = self.replies.get_by_id(target.id)
        if reply is None:
            raise TargetNotFoundError(f"reply {target.id} not found")
        return reply

    # Queries

    def list_replies(
        self,
        post_id: str,
        actor: Actor,
        *,
        mode: ReplyListMode | str = ReplyListMode.TOP,
        page: int = 1,
        page_size: int | None = None,
        max_depth: int | None = None,
    ) -> Page[ReplyView]:
        """Return one page of a post's visible replies.

        ``top`` pages top-level replies newest first with their visible child
        counts. ``tree`` pages top-level replies oldest first with their
        visible descendants nested up to ``max_depth`` levels, clamped to
        ``settings.reply_tree_max_depth``.
        """
        try:
            mode = ReplyListMode(mode)
        except ValueError as exc:
            raise InvalidRequestError(f"unknown reply list mode: {mode}") from exc
        size = self._page_size(page_size)

        self._load_visible_post(post_id, actor)
        tree = self._load_tree(post_id)
        if mode is ReplyListMode.TOP:
            return tree.top_level_page(page, size)
        cap = settings.reply_tree_max_depth
        roots = tree.full_tree(min(max_depth or cap, cap))
        return Page.slice(roots, page, size)

    def list_children(
        self,
        post_id: str,
        parent_id: str,
        actor: Actor,
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page[ReplyView]:
        """Return one page of a reply's visible direct children, oldest first."""
        size = self._page_size(page_size)
        self._load_visible_post(post_id, actor)
        return self._load_tree(post_id).children_page(parent_id, page, size)

    def count_active(self, post_id: str) -> int:
        """Authoritative number of active replies on a post."""
        self._load_post(post_id)
        return self._load_tree(post_id).count_active()

    def reconcile_reply_count(self, post_id: str, actor: Actor) -> int:
        """Overwrite the cached reply counter with the live count."""
        if not actor.is_admin:
            raise ForbiddenError("admin privileges required")
        post = self._load_post(post_id)
        cached = post.reply_count
        live = self._write_live_count(post_id)
        if cached != live:
            logger.warning(
                "Reply count drift on post %s: cached %d, live %d", post_id, cached, live
            )
        return live

    def get_reply_counts(self, post_ids: Iterable[str], actor: Actor) -> dict[str, int]:
        """Live active-reply counts for every visible post among ``post_ids``."""
        visible: list[str] = []
        for post_id in dict.fromkeys(post_ids):
            post = self.posts.get_by_id(post_id)
            if post is not None and can_view(post, actor.user_id, actor.is_admin):
                visible.append(post_id)

        try:
            records = self.replies.list_for_posts(visible)
        except SQLAlchemyError as exc:
            logger.error("Failed to load reply counts: %s", exc)
            raise DependencyUnavailableError("reply storage is unavailable") from exc

        grouped: dict[str, list[Reply]] = defaultdict(list)
        for record in records:
            grouped[record.post_id].append(record)
        return {
            post_id: ReplyTree.from_records(post_id, grouped[post_id]).count_active()
            for post_id in visible
        }

    async def authors_for(self, views: Iterable[ReplyView]) -> dict[str, UserSummary | None]:
        """Look up the authors of ``views`` and their nested children.

        Lookups are best-effort; an unavailable directory yields no profiles.
        """
        if self.user_directory is None:
            return {}
        author_ids: list[str] = []
        stack = list(views)
        while stack:
            view = stack.pop()
            author_ids.append(view.node.author_id)
            stack.extend(view.children)
        return await self.user_directory.get_many(author_ids)
