"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from forum_content.clients.file_store import FileStore, get_file_store
from forum_content.clients.user_directory import UserDirectory, get_user_directory
from forum_content.core.security import decode_access_token
from forum_content.db.session import get_db
from forum_content.domain.access_policy import Actor, Role
from forum_content.services.history_service import HistoryService
from forum_content.services.post_service import PostService
from forum_content.services.reply_service import ReplyService

# Reads are open to guests, so a missing header is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

GUEST = Actor(user_id=None, role=Role.GUEST)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Actor:
    """Resolve the caller from an optional bearer token.

    Args:
        credentials: HTTP Bearer token credentials, if any were sent

    Returns:
        The authenticated actor, or a guest when no token was sent

    Raises:
        HTTPException: If a token was sent but is invalid
    """
    if credentials is None:
        return GUEST
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise _credentials_error()
    return Actor(user_id=subject, role=Role.from_claim(payload.get("role", "user")))


CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]


def require_authenticated(actor: CurrentActorDep) -> Actor:
    """Reject guests with 401."""
    if not actor.is_authenticated:
        raise _credentials_error()
    return actor


AuthenticatedActorDep = Annotated[Actor, Depends(require_authenticated)]


def get_file_store_dep() -> FileStore:
    """Return the shared file store client."""
    return get_file_store()


def get_user_directory_dep() -> UserDirectory:
    """Return the shared user directory client."""
    return get_user_directory()


FileStoreDep = Annotated[FileStore, Depends(get_file_store_dep)]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory_dep)]


def get_reply_service(db: SessionDep, users: UserDirectoryDep) -> ReplyService:
    return ReplyService(db, user_directory=users)


ReplyServiceDep = Annotated[ReplyService, Depends(get_reply_service)]


def get_post_service(
    db: SessionDep,
    files: FileStoreDep,
    replies: ReplyServiceDep,
) -> PostService:
    return PostService(db, file_store=files, reply_service=replies)


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


def get_history_service(db: SessionDep) -> HistoryService:
    return HistoryService(db)


HistoryServiceDep = Annotated[HistoryService, Depends(get_history_service)]
