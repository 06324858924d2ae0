# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from convo_stage.api.v1.dependencies import get_revalidator_dep
from convo_stage.core.security import create_access_token
from convo_stage.db.session import Base
from convo_stage.db.session import get_db as app_get_session
from convo_stage.main import app as fastapi_app
from convo_stage.models import Community, Convo, User
from convo_stage.services import convo_service
from convo_stage.services.revalidation import PathRevalidator

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)
_COMMUNITY_COUNTER = count(1)
_CLOCK_START = datetime(2026, 1, 1, tzinfo=UTC)
_CLOCK_TICKS = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

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
def revalidator() -> PathRevalidator:
    """Return a revalidator that only records hints in-process."""
    return PathRevalidator(publish=False)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    revalidator: PathRevalidator,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_revalidator_dep] = lambda: revalidator
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_revalidator_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def row_counts(db_session: Session) -> Callable[[], dict[str, int]]:
    """Return a helper counting the rows of every table."""

    def _count() -> dict[str, int]:
        return {
            table.name: db_session.scalar(select(func.count()).select_from(table)) or 0
            for table in Base.metadata.sorted_tables
        }

    return _count


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory creating onboarded users."""

    def _make(name: str | None = None, *, onboarded: bool = True) -> User:
        number = next(_USER_COUNTER)
        user = User(
            username=f"user{number}",
            name=name or f"User {number}",
            image=f"https://img.test/u/{number}.png",
            onboarded=onboarded,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_community(db_session: Session) -> Callable[..., Community]:
    """Return a factory creating communities."""

    def _make(name: str | None = None, created_by: User | None = None) -> Community:
        number = next(_COMMUNITY_COUNTER)
        community = Community(
            username=f"community{number}",
            name=name or f"Community {number}",
            created_by_id=created_by.id if created_by else None,
        )
        db_session.add(community)
        db_session.commit()
        db_session.refresh(community)
        return community

    return _make


def _stamp(session: Session, convo: Convo) -> Convo:
    # Strictly increasing timestamps keep "newest first" deterministic.
    convo.created_at = _CLOCK_START + timedelta(seconds=next(_CLOCK_TICKS))
    session.commit()
    session.refresh(convo)
    return convo


@pytest.fixture()
def make_post(
    db_session: Session,
    revalidator: PathRevalidator,
) -> Callable[..., Convo]:
    """Return a factory creating top-level convos through the service layer."""

    def _make(author: User, text: str = "Hello convo", community: Community | None = None) -> Convo:
        convo = convo_service.create_convo(
            db_session,
            text=text,
            author_id=author.id,
            community_id=community.id if community else None,
            revalidator=revalidator,
        )
        return _stamp(db_session, convo)

    return _make


@pytest.fixture()
def make_reply(
    db_session: Session,
    revalidator: PathRevalidator,
) -> Callable[..., Convo]:
    """Return a factory creating replies through the service layer."""

    def _make(parent: Convo, author: User, text: str = "A reply") -> Convo:
        reply = convo_service.add_comment_to_convo(
            db_session,
            parent.id,
            text=text,
            user_id=author.id,
            revalidator=revalidator,
        )
        return _stamp(db_session, reply)

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def reply_tree(
    make_user: Callable[..., User],
    make_community: Callable[..., Community],
    make_post: Callable[..., Convo],
    make_reply: Callable[..., Convo],
) -> dict[str, Any]:
    """Build root R with replies A and B, where A has reply A1.

    R is posted by alice in a community, A by bob, A1 by carol, B by dave.
    """
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    dave = make_user("Dave")
    community = make_community("Builders", created_by=alice)

    root = make_post(alice, "Root post", community)
    a = make_reply(root, bob, "Reply A")
    a1 = make_reply(a, carol, "Reply A1")
    b = make_reply(root, dave, "Reply B")
    return {
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "dave": dave,
        "community": community,
        "root": root,
        "a": a,
        "a1": a1,
        "b": b,
    }
