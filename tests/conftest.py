# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BOOTSTRAP_ON_STARTUP", "false")

from ozark_collab.core.security import create_access_token
from ozark_collab.db.session import Base
from ozark_collab.db.session import get_db as app_get_session
from ozark_collab.main import app as fastapi_app
from ozark_collab.models import ChatGroup, ChatGroupMember, Post, PostComment, PostVote, User
from ozark_collab.models.user import ROLE_ADMIN
from ozark_collab.models.vote import UPVOTE
from ozark_collab.services.realtime import Broadcaster, get_broadcaster

TEST_DB_URL = "sqlite://"


class RecordingBroadcaster(Broadcaster):
    """Broadcaster that keeps published messages instead of sending them."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: list[dict[str, Any]] = []

    async def _deliver(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [m["data"] for m in self.messages if m["type"] == event_type]


class FailingBroadcaster(Broadcaster):
    """Broadcaster whose transport always fails."""

    async def _deliver(self, message: dict[str, Any]) -> None:
        raise ConnectionError("subscriber transport is down")


@pytest.fixture(scope="session")
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
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so each test cleans the tables it touched.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    broadcaster: RecordingBroadcaster,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_broadcaster, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users by username."""

    def _make(username: str, *, role: str = "student", display_name: str | None = None) -> User:
        user = User(username=username, role=role, display_name=display_name)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice", display_name="Alice A.")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("carol")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("admin", role=ROLE_ADMIN)


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    return auth_headers(bob)


@pytest.fixture()
def admin_headers(admin: User) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def alice_post(db_session: Session, alice: User) -> Post:
    """A post by alice carrying her own upvote, as the post service creates it."""
    post = Post(user_id=alice.id, content="Hello from alice", upvote_count=1, downvote_count=0)
    db_session.add(post)
    db_session.flush()
    db_session.add(PostVote(post_id=post.id, user_id=alice.id, value=UPVOTE))
    db_session.commit()
    return post


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., PostComment]:
    def _make(post: Post, author: User, content: str = "comment", parent: PostComment | None = None) -> PostComment:
        comment = PostComment(
            post_id=post.id,
            user_id=author.id,
            content=content,
            parent_comment_id=parent.id if parent is not None else None,
        )
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make


@pytest.fixture()
def make_group(db_session: Session) -> Callable[..., ChatGroup]:
    """Persist a group owned by ``owner`` with the given members.

    ``members`` is a list of (user, joined_date) pairs; the owner is added
    first unless it appears in the list.
    """

    def _make(
        owner: User,
        members: list[tuple[User, Any]] | None = None,
        *,
        name: str = "Study group",
        is_default: bool = False,
    ) -> ChatGroup:
        group = ChatGroup(
            name=name,
            description="",
            created_by_id=owner.id,
            owner_id=owner.id,
            is_default=is_default,
        )
        db_session.add(group)
        db_session.flush()
        entries = members or []
        if all(user.id != owner.id for user, _ in entries):
            db_session.add(ChatGroupMember(group_id=group.id, user_id=owner.id))
        for user, joined in entries:
            member = ChatGroupMember(group_id=group.id, user_id=user.id)
            if joined is not None:
                member.joined_date = joined
            db_session.add(member)
        db_session.commit()
        return group

    return _make


@pytest.fixture()
def failing_broadcaster() -> FailingBroadcaster:
    return FailingBroadcaster()


@pytest.fixture()
def carol_headers(carol: User) -> dict[str, str]:
    return auth_headers(carol)
