# tests/test_transitions.py
"""Tests for the post status state machine."""

from datetime import UTC, datetime
from itertools import product

import pytest

from forum_content.domain.transitions import (
    ADMIN_TRANSITIONS,
    OWNER_TRANSITIONS,
    ActorClass,
    StatusAction,
    apply_transition,
    check_publishable,
    validate_transition,
)
from forum_content.models.post import PostStatus

NOW = datetime(2024, 1, 1, tzinfo=UTC)

ALLOWED = {
    (ActorClass.OWNER, "unpublished", "published"),
    (ActorClass.OWNER, "unpublished", "deleted"),
    (ActorClass.OWNER, "published", "hidden"),
    (ActorClass.OWNER, "published", "deleted"),
    (ActorClass.OWNER, "hidden", "published"),
    (ActorClass.OWNER, "hidden", "deleted"),
    (ActorClass.OWNER, "banned", "deleted"),
    (ActorClass.ADMIN, "published", "banned"),
    (ActorClass.ADMIN, "hidden", "banned"),
    (ActorClass.ADMIN, "banned", "published"),
    (ActorClass.ADMIN, "deleted", "published"),
}


@pytest.mark.parametrize(
    ("actor_class", "current", "target"),
    list(product(ActorClass, [s.value for s in PostStatus], [s.value for s in PostStatus])),
)
def test_transition_table_is_exhaustive(actor_class, current, target) -> None:
    decision = validate_transition(current, target, actor_class)
    assert decision.allowed is ((actor_class, current, target) in ALLOWED)
    if not decision.allowed:
        assert decision.reason == f"cannot transition from {current} to {target}"


def test_no_state_is_terminal_across_both_tables() -> None:
    for status in PostStatus:
        assert OWNER_TRANSITIONS[status.value] or ADMIN_TRANSITIONS[status.value]


def test_validate_accepts_enum_members() -> None:
    assert validate_transition(PostStatus.PUBLISHED, PostStatus.BANNED, ActorClass.ADMIN).allowed


def test_actions_map_to_actor_class_and_target() -> None:
    assert StatusAction.PUBLISH.actor_class is ActorClass.OWNER
    assert StatusAction.DELETE.target == "deleted"
    assert StatusAction.BAN.actor_class is ActorClass.ADMIN
    assert StatusAction.UNBAN.target == "published"
    assert StatusAction.RECOVER.actor_class is ActorClass.ADMIN


def test_check_publishable() -> None:
    assert check_publishable("Title", "Body").allowed
    decision = check_publishable("Title", "   ")
    assert not decision.allowed
    assert decision.reason == "title and body are required to publish"
    assert not check_publishable(None, "Body").allowed


def test_ban_records_metadata() -> None:
    fields = apply_transition("published", "banned", actor_id="admin-1", now=NOW, reason="spam")
    assert fields == {
        "status": "banned",
        "modified_at": NOW,
        "banned_at": NOW,
        "banned_by": "admin-1",
        "banned_reason": "spam",
    }


def test_unban_clears_ban_metadata() -> None:
    fields = apply_transition("banned", "published", actor_id="admin-1", now=NOW)
    assert fields["banned_at"] is None
    assert fields["banned_by"] is None
    assert fields["banned_reason"] is None


def test_delete_and_recover_toggle_deleted_at() -> None:
    assert apply_transition("published", "deleted", actor_id="o", now=NOW)["deleted_at"] == NOW
    assert apply_transition("deleted", "published", actor_id="a", now=NOW)["deleted_at"] is None


def test_plain_transition_only_touches_status_fields() -> None:
    assert apply_transition("published", "hidden", actor_id="o", now=NOW) == {
        "status": "hidden",
        "modified_at": NOW,
    }


def test_recover_clears_ban_metadata_and_deleted_at() -> None:
    fields = apply_transition("deleted", "published", actor_id="admin-1", now=NOW)
    assert fields == {
        "status": "published",
        "modified_at": NOW,
        "deleted_at": None,
        "banned_at": None,
        "banned_by": None,
        "banned_reason": None,
    }


def test_deleting_a_banned_post_keeps_the_ban_record() -> None:
    fields = apply_transition("banned", "deleted", actor_id="owner-1", now=NOW)
    assert fields == {"status": "deleted", "modified_at": NOW, "deleted_at": NOW}
