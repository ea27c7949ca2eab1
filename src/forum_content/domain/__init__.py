"""Pure domain engines: access policy, status transitions and reply trees."""

from .access_policy import Actor, Role, build_listing_filter, can_modify, can_view
from .reply_tree import Page, ReplyNode, ReplyTree, ReplyView
from .transitions import StatusAction, TransitionDecision, validate_transition

__all__ = [
    "Actor",
    "Page",
    "ReplyNode",
    "ReplyTree",
    "ReplyView",
    "Role",
    "StatusAction",
    "TransitionDecision",
    "build_listing_filter",
    "can_modify",
    "can_view",
    "validate_transition",
]
