"""Visibility and modification rules for posts and replies.

Everything here is a pure function of the actor and the post's ownership and
status. Roles are resolved once at the authentication edge; superadmins are
folded into :attr:`Role.ADMIN` there.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from forum_content.models.post import PostStatus, status_value

ADMIN_LISTABLE_STATUSES = frozenset(
    {PostStatus.PUBLISHED.value, PostStatus.BANNED.value, PostStatus.DELETED.value}
)
PUBLIC_LISTABLE_STATUSES = frozenset({PostStatus.PUBLISHED.value})
OWNER_ONLY_STATUSES = frozenset({PostStatus.UNPUBLISHED.value, PostStatus.HIDDEN.value})
EDITABLE_STATUSES = frozenset(
    {PostStatus.UNPUBLISHED.value, PostStatus.PUBLISHED.value, PostStatus.HIDDEN.value}
)


class Role(str, Enum):
    """Closed set of actor roles."""

    GUEST = "guest"
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def from_claim(cls, value: object) -> Role:
        """Map a raw token claim onto a role; unknown values become guests."""
        if not isinstance(value, str):
            return cls.GUEST
        normalized = value.strip().lower().replace("_", "")
        if normalized in {"admin", "superadmin"}:
            return cls.ADMIN
        if normalized == "user":
            return cls.USER
        return cls.GUEST


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a service operation."""

    user_id: str | None
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None and self.role is not Role.GUEST


class PostLike(Protocol):
    owner_id: str
    status: str


def is_owner(post: PostLike, actor_id: str | None) -> bool:
    """Return True when ``actor_id`` created ``post``."""
    return actor_id is not None and post.owner_id == actor_id


def can_view(post: PostLike, actor_id: str | None, is_admin: bool) -> bool:
    """Return whether the actor may see the post in its current status."""
    owner = is_owner(post, actor_id)
    status = status_value(post.status)

    if status == PostStatus.PUBLISHED:
        return True
    if status in OWNER_ONLY_STATUSES:
        return owner
    if status in (PostStatus.BANNED, PostStatus.DELETED):
        return owner or is_admin
    return False


def can_modify(post: PostLike, actor_id: str | None, is_admin: bool) -> bool:
    """Return whether the actor may edit the post's content.

    Admins act only through status endpoints, so ``is_admin`` grants nothing
    here. Banned and deleted posts are frozen for everyone.
    """
    return is_owner(post, actor_id) and status_value(post.status) in EDITABLE_STATUSES


def build_listing_filter(
    actor_id: str | None,
    is_admin: bool,
    requested_status: str | None = None,
) -> frozenset[str]:
    """Return the statuses a general listing query may include.

    An empty set means the listing must return nothing.
    """
    if requested_status is not None:
        requested_status = status_value(requested_status)

    if is_admin:
        if requested_status is None:
            return ADMIN_LISTABLE_STATUSES
        if requested_status in ADMIN_LISTABLE_STATUSES:
            return frozenset({requested_status})
        return frozenset()

    # Owner-only statuses are served by owner-scoped endpoints, never here.
    if requested_status is None or requested_status == PostStatus.PUBLISHED:
        return PUBLIC_LISTABLE_STATUSES
    return frozenset()


def can_delete_reply(
    reply_author_id: str,
    post_owner_id: str | None,
    actor_id: str | None,
    is_admin: bool,
) -> bool:
    """Return whether the actor may soft-delete a reply."""
    if is_admin:
        return True
    if actor_id is None:
        return False
    return actor_id in (reply_author_id, post_owner_id)


__all__ = [
    "Actor",
    "Role",
    "build_listing_filter",
    "can_delete_reply",
    "can_modify",
    "can_view",
    "is_owner",
]
