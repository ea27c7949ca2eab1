# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta
from typing import Any

import httpx
import pytest

os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from forum_content.api.v1.dependencies import get_file_store_dep, get_user_directory_dep
from forum_content.clients.file_store import FileStore
from forum_content.clients.user_directory import UserCache, UserDirectory
from forum_content.core.security import create_access_token
from forum_content.db.session import Base
from forum_content.db.session import get_db as app_get_session
from forum_content.db.time import utcnow
from forum_content.domain.access_policy import Actor, Role
from forum_content.main import app as fastapi_app
from forum_content.models import Post, PostStatus, Reply

TEST_DB_URL = "sqlite://"


class FileServiceStub:
    """In-process stand-in for the file service behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.filenames: list[str] = []
        self.fail_on_upload: int | None = None
        self._uploads = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/upload":
            self._uploads += 1
            if self.fail_on_upload is not None and self._uploads >= self.fail_on_upload:
                return httpx.Response(500, json={"success": False})
            url = f"https://files.test/{self._uploads}"
            self.uploaded.append(url)
            return httpx.Response(200, json={"success": True, "data": {"url": url}})
        if request.url.path == "/delete":
            self.deleted.append(json.loads(request.content)["url"])
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404)

    def store(self) -> FileStore:
        return FileStore("http://files.test", transport=httpx.MockTransport(self.handler))


class UserServiceStub:
    """In-process stand-in for the user directory."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.calls = 0
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.fail:
            return httpx.Response(503)
        user_id = request.url.path.rsplit("/", 1)[-1]
        user = self.users.get(user_id)
        if user is None:
            return httpx.Response(404, json={"detail": "not found"})
        return httpx.Response(200, json=user)

    def directory(self, ttl_seconds: float = 300.0) -> UserDirectory:
        return UserDirectory(
            "http://users.test",
            cache=UserCache(ttl_seconds),
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def file_service() -> FileServiceStub:
    """Return the recording file service stub."""
    return FileServiceStub()


@pytest.fixture()
def user_service() -> UserServiceStub:
    """Return the user directory stub, seeded with no users."""
    return UserServiceStub()


@pytest.fixture()
def file_store(file_service: FileServiceStub) -> FileStore:
    return file_service.store()


@pytest.fixture()
def user_directory(user_service: UserServiceStub) -> UserDirectory:
    return user_service.directory()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    file_store: FileStore,
    user_directory: UserDirectory,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_file_store_dep] = lambda: file_store
    app.dependency_overrides[get_user_directory_dep] = lambda: user_directory
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def owner() -> Actor:
    return Actor(user_id="owner-1", role=Role.USER)


@pytest.fixture()
def other_user() -> Actor:
    return Actor(user_id="other-1", role=Role.USER)


@pytest.fixture()
def admin() -> Actor:
    return Actor(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture()
def guest() -> Actor:
    return Actor(user_id=None, role=Role.GUEST)


@pytest.fixture()
def headers_for() -> Callable[[Actor], dict[str, str]]:
    """Return a factory producing bearer headers for an actor."""

    def _headers(actor: Actor) -> dict[str, str]:
        token = create_access_token(actor.user_id or "", actor.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def make_post(db_session: Session, owner: Actor) -> Callable[..., Post]:
    """Return a factory that persists posts directly."""

    def _make(
        status: PostStatus = PostStatus.PUBLISHED,
        owner_id: str | None = None,
        title: str = "A title",
        body: str = "Some body text",
        **extra: Any,
    ) -> Post:
        post = Post(
            owner_id=owner_id or owner.user_id,
            status=status.value,
            title=title,
            body=body,
            **extra,
        )
        db_session.add(post)
        db_session.commit()
        return post

    return _make


@pytest.fixture()
def make_reply(db_session: Session) -> Callable[..., Reply]:
    """Return a factory that persists reply rows with increasing timestamps."""
    base = utcnow()
    counter = {"n": 0}

    def _make(
        post: Post,
        parent: Reply | None = None,
        author_id: str = "replier-1",
        body: str = "a reply",
        is_active: bool = True,
    ) -> Reply:
        counter["n"] += 1
        reply = Reply(
            post_id=post.id,
            parent_reply_id=parent.id if parent is not None else None,
            author_id=author_id,
            body=body,
            is_active=is_active,
            order_index=counter["n"],
            created_at=base + timedelta(seconds=counter["n"]),
        )
        db_session.add(reply)
        db_session.commit()
        return reply

    return _make
