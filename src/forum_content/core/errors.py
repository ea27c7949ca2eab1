"""Domain error taxonomy.

Every error a caller may see derives from :class:`ForumError` and carries the
HTTP status the API layer renders it with. Services raise these; the FastAPI
exception handler in ``forum_content.main`` translates them into the common
error envelope.
"""

from __future__ import annotations


class ForumError(RuntimeError):
    """Base class for all expected domain failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ForumError):
    """Raised when a requested entity does not exist."""

    status_code = 404


class ForbiddenError(ForumError):
    """Raised when a policy or transition denies the request.

    The message is the human-readable denial reason and is returned verbatim.
    """

    status_code = 403


class InvalidRequestError(ForumError):
    """Raised for malformed input or failed content preconditions."""

    status_code = 400


class ConflictError(ForumError):
    """Raised when a concurrent write invalidated the caller's read."""

    status_code = 409


class DependencyUnavailableError(ForumError):
    """Raised when an external collaborator timed out or failed."""

    status_code = 503


class TreeCorruptionError(ForumError):
    """Raised when persisted reply records violate the tree invariants."""

    status_code = 500


# Reply tree failures


class ParentNotFoundError(NotFoundError):
    """The parent reply does not exist in the post's tree."""


class ParentInactiveError(InvalidRequestError):
    """The parent reply has been soft-deleted."""


class ParentPostMismatchError(InvalidRequestError):
    """The parent reply belongs to a different post."""


class TargetNotFoundError(NotFoundError):
    """A reply addressed by id or path could not be resolved."""


__all__ = [
    "ConflictError",
    "DependencyUnavailableError",
    "ForbiddenError",
    "ForumError",
    "InvalidRequestError",
    "NotFoundError",
    "ParentInactiveError",
    "ParentNotFoundError",
    "ParentPostMismatchError",
    "TargetNotFoundError",
    "TreeCorruptionError",
]
