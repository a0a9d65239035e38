"""Shared fixtures: actors, mocked Cassandra sessions and the access policy."""

import os
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_REQUESTS", "false")

from backlogged.access.policy import AccessPolicyResolver  # noqa: E402
from backlogged.auth.models import Actor  # noqa: E402
from backlogged.auth.permissions import UserRole  # noqa: E402
from backlogged.auth.security import create_access_token  # noqa: E402
from doubles import FollowSet, lwt_result  # noqa: E402


@pytest.fixture
def mock_session():
    """Mock Cassandra session with awaitable ``aexecute`` (cassandra-asyncio-driver)."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(query_string=cql))
    session.aexecute = AsyncMock(return_value=lwt_result(True))
    return session


@pytest.fixture
def owner() -> Actor:
    return Actor(id=uuid4())


@pytest.fixture
def other_user() -> Actor:
    return Actor(id=uuid4())


@pytest.fixture
def admin() -> Actor:
    return Actor(id=uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def follow_set() -> FollowSet:
    return FollowSet()


@pytest.fixture
def policy(follow_set: FollowSet) -> AccessPolicyResolver:
    return AccessPolicyResolver(follow_exists=follow_set.exists)


SERVICE_NAMES = ("follow_graph", "review_service", "comment_service", "playlist_service")


@pytest.fixture
def app():
    """The FastAPI app without its lifespan; tests put services on ``app.state``."""
    from backlogged.main import app as fastapi_app

    yield fastapi_app
    for name in SERVICE_NAMES:
        if hasattr(fastapi_app.state, name):
            delattr(fastapi_app.state, name)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers(owner: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner.id)}"}
