# tests/conftest.py
from __future__ import annotations

import json
import secrets
from collections.abc import Callable, Generator, Iterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blog_gateway.api.dependencies import get_blob_service, get_cache_store, get_session_store
from blog_gateway.db.session import Base, enable_sqlite_foreign_keys
from blog_gateway.db.session import get_db as app_get_session
from blog_gateway.db.time import unix_now
from blog_gateway.main import app as fastapi_app
from blog_gateway.models import Comment, Post, User, Wall
from blog_gateway.models.comment import COMMENT_STATUS_PENDING
from blog_gateway.models.post import POST_STATUS_DRAFT, POST_STATUS_PUBLISHED
from blog_gateway.services.cache import ContentCache
from blog_gateway.services.storage import StorageClient, StorageResult, StoredObject

TEST_DB_URL = "sqlite://"


class InMemoryKV:
    """Dict-backed stand-in for the Redis session store and cache."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.deleted: list[str] = []

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.data.pop(key, None)


class FailingKV:
    """Store whose every call raises, as an unreachable Redis would."""

    async def get(self, key: str) -> str | None:
        raise ConnectionError("store unavailable")

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        raise ConnectionError("store unavailable")

    async def delete(self, key: str) -> None:
        raise ConnectionError("store unavailable")


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def session_store() -> InMemoryKV:
    return InMemoryKV()


@pytest.fixture()
def cache_store() -> InMemoryKV:
    return InMemoryKV()


@pytest.fixture()
def failing_store() -> FailingKV:
    return FailingKV()


@pytest.fixture()
def content_cache(cache_store: InMemoryKV) -> ContentCache:
    return ContentCache(cache_store, ttl_seconds=300)


@pytest.fixture()
def storage() -> AsyncMock:
    """Storage service double; uploads succeed with a key under the caller's prefix."""
    client = AsyncMock(spec=StorageClient)

    async def _upload(principal: Any, *, file_name: str, **_: Any) -> StoredObject:
        return StoredObject(
            key=f"{principal.id}/{file_name}",
            url=f"https://media.test/{principal.id}/{file_name}",
            media_id=None,
        )

    client.upload.side_effect = _upload
    client.delete.return_value = StorageResult(status_code=200, payload={"success": True})
    client.quota.return_value = StorageResult(
        status_code=200,
        payload={"total_bytes_used": 0, "files": []},
    )
    return client


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    session_store: InMemoryKV,
    cache_store: InMemoryKV,
    storage: AsyncMock,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_cache_store] = lambda: cache_store
    app.dependency_overrides[get_blob_service] = lambda: storage
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def lenient_client(app: FastAPI) -> Iterator[TestClient]:
    """Client that returns 500 responses instead of re-raising server errors."""
    with TestClient(app, base_url="http://test", raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture()
def login(session_store: InMemoryKV) -> Callable[..., dict[str, str]]:
    """Return a factory that stores a session record and builds its Cookie header."""

    def _login(user_id: str, role: str = "user", **record: Any) -> dict[str, str]:
        session_id = secrets.token_hex(16)
        payload = {
            "userId": user_id,
            "username": record.pop("username", user_id),
            "email": record.pop("email", f"{user_id}@example.com"),
            "role": role,
            **record,
        }
        session_store.data[session_id] = json.dumps(payload)
        return {"Cookie": f"session_id={session_id}"}

    return _login


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(user_id: str, role: str = "user", username: str | None = None) -> User:
        now = unix_now()
        user = User(
            id=user_id,
            username=username or user_id,
            email=f"{user_id}@example.com",
            role=role,
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_post(db_session: Session, make_user: Callable[..., User]) -> Callable[..., Post]:
    def _make_post(
        slug: str,
        *,
        author_id: str = "author-1",
        published_at: int | None = None,
        status: str | None = None,
        title: str | None = None,
    ) -> Post:
        if db_session.get(User, author_id) is None:
            make_user(author_id, role="admin")
        if status is None:
            status = POST_STATUS_PUBLISHED if published_at is not None else POST_STATUS_DRAFT
        now = unix_now()
        post = Post(
            title=title or slug.replace("-", " ").title(),
            slug=slug,
            content="Body text long enough for a post.",
            excerpt="",
            author_id=author_id,
            status=status,
            created_at=published_at or now,
            updated_at=published_at or now,
            published_at=published_at,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def make_wall(db_session: Session) -> Callable[..., Wall]:
    def _make_wall(title: str = "Guestbook", *, is_active: bool = True) -> Wall:
        now = unix_now()
        wall = Wall(title=title, description=None, is_active=is_active, created_at=now, updated_at=now)
        db_session.add(wall)
        db_session.commit()
        db_session.refresh(wall)
        return wall

    return _make_wall


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make_comment(
        content: str,
        *,
        post_id: str | None = None,
        wall_id: str | None = None,
        parent_comment_id: str | None = None,
        status: str = COMMENT_STATUS_PENDING,
        created_at: int | None = None,
    ) -> Comment:
        created_at = created_at or unix_now()
        comment = Comment(
            content=content,
            author_name="Visitor",
            post_id=post_id,
            wall_id=wall_id,
            parent_comment_id=parent_comment_id,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment
