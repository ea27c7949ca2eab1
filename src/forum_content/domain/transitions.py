"""Post status state machine.

Two transition tables exist, one per actor class. No state is terminal:
banned and deleted posts can be brought back by an admin.

Owner table::

    unpublished -> published, deleted
    published   -> hidden, deleted
    hidden      -> published, deleted
    banned      -> deleted
    deleted     -> (none)

Admin table::

    published   -> banned
    hidden      -> banned
    banned      -> published   (unban)
    deleted     -> published   (recover)
    unpublished -> (none)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from forum_content.models.post import PostStatus, status_value


class ActorClass(str, Enum):
    """Which transition table governs a request."""

    OWNER = "owner"
    ADMIN = "admin"


OWNER_TRANSITIONS: dict[str, frozenset[str]] = {
    PostStatus.UNPUBLISHED.value: frozenset(
        {PostStatus.PUBLISHED.value, PostStatus.DELETED.value}
    ),
    PostStatus.PUBLISHED.value: frozenset({PostStatus.HIDDEN.value, PostStatus.DELETED.value}),
    PostStatus.HIDDEN.value: frozenset({PostStatus.PUBLISHED.value, PostStatus.DELETED.value}),
    PostStatus.BANNED.value: frozenset({PostStatus.DELETED.value}),
    PostStatus.DELETED.value: frozenset(),
}

ADMIN_TRANSITIONS: dict[str, frozenset[str]] = {
    PostStatus.PUBLISHED.value: frozenset({PostStatus.BANNED.value}),
    PostStatus.HIDDEN.value: frozenset({PostStatus.BANNED.value}),
    PostStatus.BANNED.value: frozenset({PostStatus.PUBLISHED.value}),
    PostStatus.DELETED.value: frozenset({PostStatus.PUBLISHED.value}),
    PostStatus.UNPUBLISHED.value: frozenset(),
}

TRANSITION_TABLES: dict[ActorClass, dict[str, frozenset[str]]] = {
    ActorClass.OWNER: OWNER_TRANSITIONS,
    ActorClass.ADMIN: ADMIN_TRANSITIONS,
}


class StatusAction(str, Enum):
    """Named status endpoints, each bound to an actor class and a target."""

    PUBLISH = "publish"
    HIDE = "hide"
    UNHIDE = "unhide"
    DELETE = "delete"
    BAN = "ban"
    UNBAN = "unban"
    RECOVER = "recover"

    @property
    def actor_class(self) -> ActorClass:
        if self in (StatusAction.BAN, StatusAction.UNBAN, StatusAction.RECOVER):
            return ActorClass.ADMIN
        return ActorClass.OWNER

    @property
    def target(self) -> str:
        return _ACTION_TARGETS[self]


_ACTION_TARGETS: dict[StatusAction, str] = {
    StatusAction.PUBLISH: PostStatus.PUBLISHED.value,
    StatusAction.HIDE: PostStatus.HIDDEN.value,
    StatusAction.UNHIDE: PostStatus.PUBLISHED.value,
    StatusAction.DELETE: PostStatus.DELETED.value,
    StatusAction.BAN: PostStatus.BANNED.value,
    StatusAction.UNBAN: PostStatus.PUBLISHED.value,
    StatusAction.RECOVER: PostStatus.PUBLISHED.value,
}


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of a transition check."""

    allowed: bool
    reason: str | None = None


ALLOWED = TransitionDecision(allowed=True)


def validate_transition(
    current: str | PostStatus,
    target: str | PostStatus,
    actor_class: ActorClass,
) -> TransitionDecision:
    """Check ``current -> target`` against the table for ``actor_class``."""
    current_value = status_value(current)
    target_value = status_value(target)
    allowed_targets = TRANSITION_TABLES[actor_class].get(current_value, frozenset())
    if target_value in allowed_targets:
        return ALLOWED
    return TransitionDecision(
        allowed=False,
        reason=f"cannot transition from {current_value} to {target_value}",
    )


def check_publishable(title: str | None, body: str | None) -> TransitionDecision:
    """Content completeness guard for any move into ``published`` by an owner."""
    if title and title.strip() and body and body.strip():
        return ALLOWED
    return TransitionDecision(allowed=False, reason="title and body are required to publish")


def apply_transition(
    current: str | PostStatus,
    target: str | PostStatus,
    *,
    actor_id: str,
    now: datetime,
    reason: str | None = None,
) -> dict[str, Any]:
    """Return the column values an authorized transition writes.

    Callers must have obtained an allowed :class:`TransitionDecision` first.
    """
    current_value = status_value(current)
    target_value = status_value(target)
    fields: dict[str, Any] = {"status": target_value, "modified_at": now}

    if target_value == PostStatus.BANNED:
        fields.update(banned_at=now, banned_by=actor_id, banned_reason=reason)
    elif target_value == PostStatus.DELETED:
        fields["deleted_at"] = now
    else:
        if current_value == PostStatus.DELETED:
            fields["deleted_at"] = None
        # A published post never carries ban metadata, whatever the route in.
        if target_value == PostStatus.PUBLISHED or current_value == PostStatus.BANNED:
            fields.update(banned_at=None, banned_by=None, banned_reason=None)

    return fields


__all__ = [
    "ADMIN_TRANSITIONS",
    "OWNER_TRANSITIONS",
    "ActorClass",
    "StatusAction",
    "TransitionDecision",
    "apply_transition",
    "check_publishable",
    "validate_transition",
]
