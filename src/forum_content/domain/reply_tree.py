"""In-memory reply tree for a single post.

Replies are stored flat with a parent pointer. This module rebuilds the
adjacency projection (``child_ids``) from those records and provides the
operations the reply service needs: insertion under a parent, idempotent soft
deletion by id or by index path, authoritative active counts, and the
paginated views handed to the API.

Deleting a node never touches its descendants. Inactive nodes keep their
place in ``child_ids`` so that their active descendants stay reachable; every
view omits the inactive node and lifts its visible descendants into its
position.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from forum_content.core.errors import (
    InvalidRequestError,
    ParentInactiveError,
    ParentNotFoundError,
    ParentPostMismatchError,
    TargetNotFoundError,
    TreeCorruptionError,
)
from forum_content.db.time import ensure_utc

T = TypeVar("T")


@dataclass
class ReplyNode:
    """One reply plus its ordered direct children."""

    id: str
    post_id: str
    parent_id: str | None
    author_id: str
    body: str
    created_at: datetime
    is_active: bool = True
    attachment_refs: list[str] = field(default_factory=list)
    order_index: int = 0
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    child_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.created_at = ensure_utc(self.created_at)

    @classmethod
    def from_record(cls, record: Any) -> ReplyNode:
        """Build a node from a persisted reply row."""
        return cls(
            id=record.id,
            post_id=record.post_id,
            parent_id=record.parent_reply_id,
            author_id=record.author_id,
            body=record.body,
            created_at=record.created_at,
            is_active=record.is_active,
            attachment_refs=list(record.attachment_refs or []),
            order_index=record.order_index or 0,
            deleted_at=record.deleted_at,
            deleted_by=record.deleted_by,
        )

    @property
    def sort_key(self) -> tuple[datetime, int, str]:
        return (self.created_at, self.order_index, self.id)


@dataclass(frozen=True)
class ReplyView:
    """A materialized, visible reply with its nested visible children."""

    node: ReplyNode
    children: tuple[ReplyView, ...] = ()
    child_count: int = 0
    depth: int = 0


@dataclass(frozen=True)
class Page(Generic[T]):
    """A single page of results plus the pagination envelope."""

    items: list[T]
    page: int
    page_size: int
    total: int

    @classmethod
    def slice(cls, items: Sequence[T], page: int, page_size: int) -> Page[T]:
        """Cut ``items`` into the requested 1-based page."""
        if page < 1 or page_size < 1:
            raise InvalidRequestError("page and page size must be positive")
        start = (page - 1) * page_size
        return cls(
            items=list(items[start:start + page_size]),
            page=page,
            page_size=page_size,
            total=len(items),
        )

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


class ReplyTree:
    """Arena of :class:`ReplyNode` objects keyed by id for one post."""

    def __init__(self, post_id: str) -> None:
        self.post_id = post_id
        self._nodes: dict[str, ReplyNode] = {}
        self._root_ids: list[str] = []

    @classmethod
    def from_records(cls, post_id: str, records: Iterable[Any]) -> ReplyTree:
        """Rebuild the tree for ``post_id`` from persisted reply rows.

        Raises:
            TreeCorruptionError: If a record belongs to another post, points at
                a parent outside the post, or participates in a cycle.
        """
        tree = cls(post_id)
        nodes = sorted(
            (r if isinstance(r, ReplyNode) else ReplyNode.from_record(r) for r in records),
            key=lambda n: n.sort_key,
        )
        for node in nodes:
            if node.post_id != post_id:
                raise TreeCorruptionError(f"reply {node.id} belongs to post {node.post_id}")
            node.child_ids = []
            tree._nodes[node.id] = node

        for node in nodes:
            if node.parent_id is None:
                tree._root_ids.append(node.id)
                continue
            parent = tree._nodes.get(node.parent_id)
            if parent is None:
                raise TreeCorruptionError(
                    f"reply {node.id} points at unknown parent {node.parent_id}"
                )
            parent.child_ids.append(node.id)

        reachable = sum(1 for _ in tree._walk())
        if reachable != len(tree._nodes):
            raise TreeCorruptionError(f"reply tree for post {post_id} contains a cycle")
        return tree

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def root_ids(self) -> list[str]:
        return list(self._root_ids)

    def get(self, node_id: str) -> ReplyNode | None:
        return self._nodes.get(node_id)

    def node(self, node_id: str) -> ReplyNode:
        """Return the node for ``node_id`` or raise :class:`TargetNotFoundError`."""
        found = self._nodes.get(node_id)
        if found is None:
            raise TargetNotFoundError(f"reply {node_id} not found")
        return found

    def _walk(self) -> Iterator[ReplyNode]:
        """Breadth-first walk over every node reachable from the roots."""
        seen: set[str] = set()
        queue = deque(self._root_ids)
        while queue:
            node_id = queue.popleft()
            if node_id in seen:
                continue
            seen.add(node_id)
            node = self._nodes[node_id]
            yield node
            queue.extend(node.child_ids)

    # Mutation

    def insert(self, parent_id: str | None, node: ReplyNode) -> ReplyNode:
        """Attach ``node`` under ``parent_id`` (or as a top-level reply).

        Raises:
            ParentNotFoundError: The parent is not part of this tree.
            ParentPostMismatchError: The parent belongs to a different post
                than the new reply.
            ParentInactiveError: The parent has been soft-deleted.
        """
        if node.id in self._nodes:
            raise InvalidRequestError(f"reply {node.id} already exists")

        if parent_id is None:
            if node.post_id != self.post_id:
                raise ParentPostMismatchError(
                    f"reply for post {node.post_id} cannot join post {self.post_id}"
                )
            node.parent_id = None
            self._nodes[node.id] = node
            self._root_ids.append(node.id)
            return node

        parent = self._nodes.get(parent_id)
        if parent is None:
            raise ParentNotFoundError(f"parent reply {parent_id} not found")
        if parent.post_id != node.post_id:
            raise ParentPostMismatchError(
                f"parent reply {parent_id} belongs to a different post"
            )
        if not parent.is_active:
            raise ParentInactiveError(f"parent reply {parent_id} is not active")

        node.parent_id = parent_id
        self._nodes[node.id] = node
        parent.child_ids.append(node.id)
        return node

    def soft_delete(
        self,
        target_id: str,
        *,
        deleted_by: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Mark one node inactive and return the counter decrement.

        Returns 1 when the node flipped and 0 when it was already inactive,
        so repeated deletes never double-decrement. Descendants are untouched.
        """
        node = self.node(target_id)
        if not node.is_active:
            return 0
        node.is_active = False
        node.deleted_at = now or datetime.now(UTC)
        node.deleted_by = deleted_by
        return 1

    def resolve_path(self, root_id: str, path: Sequence[int]) -> ReplyNode:
        """Follow child indices from ``root_id`` down to the addressed node.

        Indices address positions in ``child_ids`` and therefore include
        inactive children.
        """
        if not path:
            raise InvalidRequestError("invalid target path")
        current = self._nodes.get(root_id)
        if current is None:
            raise TargetNotFoundError(f"reply {root_id} not found")
        for index in path:
            if index < 0 or index >= len(current.child_ids):
                raise TargetNotFoundError("target reply not found")
            current = self._nodes[current.child_ids[index]]
        return current

    def soft_delete_by_path(
        self,
        root_id: str,
        path: Sequence[int],
        *,
        deleted_by: str | None = None,
        now: datetime | None = None,
    ) -> tuple[ReplyNode, int]:
        """Resolve ``path`` and soft-delete the node it addresses."""
        target = self.resolve_path(root_id, path)
        return target, self.soft_delete(target.id, deleted_by=deleted_by, now=now)

    # Counting

    def count_active(self) -> int:
        """Authoritative number of active replies reachable from the roots."""
        return sum(1 for node in self._walk() if node.is_active)

    def count_active_children(self, node_id: str) -> int:
        """Number of visible direct children, lifting through inactive ones."""
        return len(self._visible_children(self.node(node_id).child_ids))

    # Materialization

    def _visible_children(self, child_ids: Sequence[str]) -> list[ReplyNode]:
        """Active nodes among ``child_ids``, substituting inactive ones with
        their own visible descendants, in creation order."""
        visible: list[ReplyNode] = []
        stack = list(reversed(child_ids))
        while stack:
            node = self._nodes[stack.pop()]
            if node.is_active:
                visible.append(node)
            else:
                stack.extend(reversed(node.child_ids))
        visible.sort(key=lambda n: n.sort_key)
        return visible

    def top_level_page(self, page: int, page_size: int) -> Page[ReplyView]:
        """Visible top-level replies, newest first."""
        roots = self._visible_children(self._root_ids)
        roots.reverse()
        views = [
            ReplyView(node=n, child_count=len(self._visible_children(n.child_ids)))
            for n in roots
        ]
        return Page.slice(views, page, page_size)

    def children_page(self, parent_id: str, page: int, page_size: int) -> Page[ReplyView]:
        """Visible direct children of ``parent_id``, oldest first."""
        children = self._visible_children(self.node(parent_id).child_ids)
        views = [
            ReplyView(node=n, child_count=len(self._visible_children(n.child_ids)), depth=1)
            for n in children
        ]
        return Page.slice(views, page, page_size)

    def full_tree(self, max_depth: int | None = None) -> list[ReplyView]:
        """Nest every visible reply under its nearest visible ancestor.

        Siblings are ordered oldest first at every level. ``max_depth``
        counts levels, so ``1`` returns only the top-level replies. Views
        are assembled bottom-up from an explicit stack, so chain length is
        not bounded by the interpreter's recursion limit.
        """
        if max_depth is not None and max_depth < 1:
            raise InvalidRequestError("max depth must be at least 1")
        roots = self._visible_children(self._root_ids)

        # Pre-order: every node lands after its visible ancestor.
        order: list[tuple[ReplyNode, int, list[ReplyNode], bool]] = []
        stack = [(node, 0) for node in reversed(roots)]
        while stack:
            node, depth = stack.pop()
            children = self._visible_children(node.child_ids)
            expand = max_depth is None or depth + 1 < max_depth
            order.append((node, depth, children, expand))
            if expand:
                stack.extend((child, depth + 1) for child in reversed(children))

        built: dict[str, ReplyView] = {}
        for node, depth, children, expand in reversed(order):
            nested = tuple(built.pop(child.id) for child in children) if expand else ()
            built[node.id] = ReplyView(
                node=node, children=nested, child_count=len(children), depth=depth
            )
        return [built[node.id] for node in roots]


__all__ = ["Page", "ReplyNode", "ReplyTree", "ReplyView"]
