"""
Shared fixtures: in-memory database, signed session tokens and a test app.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import agencyapp.models  # noqa: F401
from agencyapp.api.dependencies.request_db import get_request_db_session
from agencyapp.db_base import Base
from agencyapp.main import create_app
from agencyapp.middleware.inactivity import reset_inactivity_tracker
from agencyapp.monitoring.access_alerts import reset_block_counts

TEST_JWT_SECRET = "test-secret-for-session-tokens-0123456789"
TEST_USER_ID = "user-ama"
OTHER_USER_ID = "user-kofi"


@pytest.fixture(autouse=True)
def _reset_module_state():
    reset_block_counts()
    reset_inactivity_tracker()
    yield
    reset_block_counts()
    reset_inactivity_tracker()


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs routes in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create in-memory SQLite database session for testing."""
    Session = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def auth_env(monkeypatch):
    """Configure session verification and disable inactivity logout."""
    monkeypatch.setenv("AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("AUTH_JWT_AUDIENCE", raising=False)
    monkeypatch.setenv("INACTIVITY_LOGOUT_ENABLED", "false")


def make_token(user_id=TEST_USER_ID, email="ama@example.com", expires_in=timedelta(hours=1), **claims):
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(user_id=TEST_USER_ID):
    return {"Authorization": f"Bearer {make_token(user_id=user_id)}"}


@pytest.fixture
def app(db_session, auth_env):
    """Application wired to the in-memory database."""
    application = create_app()

    def _override_db():
        yield db_session

    application.dependency_overrides[get_request_db_session] = _override_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def dict_backed_redis(store=None):
    """Mock Redis whose get/setex/delete read and write a plain dict."""
    store = {} if store is None else store
    mock_redis = Mock()
    mock_redis.store = store
    mock_redis.get.side_effect = store.get
    mock_redis.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
    mock_redis.delete.side_effect = lambda key: store.pop(key, None)
    return mock_redis
