"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the app (and its settings) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("QUEUE_NOTIFIER_BACKEND", "none")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.core.dependencies import get_queue_notifier
from rest_api.models import Base, Product
from rest_api.services.events import OrderEventNotifier
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier:
    """QueueNotifier that keeps every broadcast for assertions."""

    def __init__(self):
        self.sent = []

    def broadcast(self, topic, payload):
        self.sent.append((topic, payload))

    def types_for(self, topic):
        return [event.type for sent_topic, event in self.sent if sent_topic == topic]


class FailingNotifier:
    """QueueNotifier whose transport is down."""

    def __init__(self):
        self.attempts = 0

    def broadcast(self, topic, payload):
        self.attempts += 1
        raise ConnectionError("Redis unavailable")


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def file_session_factory(tmp_path):
    """
    Sessions on a file-backed SQLite database, for tests that need two
    independent connections (two counters settling the same order).
    """
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'pos.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    yield factory
    file_engine.dispose()


@pytest.fixture
def recorder():
    return RecordingNotifier()


@pytest.fixture
def event_notifier(recorder):
    return OrderEventNotifier(recorder)


@pytest.fixture(scope="function")
def client(db_session, recorder):
    """
    Create a test client with database session and queue notifier overrides.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_queue_notifier] = lambda: recorder

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _add_product(session, product_id, name, price_cents, stock, is_active=True):
    product = Product(
        id=product_id,
        name=name,
        unit_price_cents=price_cents,
        available_stock=stock,
        is_active=is_active,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def make_product(db_session):
    """Factory: make_product("cake", "Bolo", 3500, stock=2)."""
    def factory(product_id, name, price_cents, stock, is_active=True):
        return _add_product(db_session, product_id, name, price_cents, stock, is_active)
    return factory


@pytest.fixture
def bread(db_session):
    """Pão francês: 80 cents, 5 in stock."""
    return _add_product(db_session, "bread", "Pão francês", 80, 5)


@pytest.fixture
def coffee(db_session):
    return _add_product(db_session, "coffee", "Café coado", 450, 20)


@pytest.fixture
def retired_product(db_session):
    return _add_product(db_session, "sonho", "Sonho de creme", 600, 10, is_active=False)


def auth_headers_for(*roles, sub="staff-1"):
    token = sign_jwt({"sub": sub, "roles": list(roles)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def attendant_headers():
    return auth_headers_for("ATTENDANT", sub="attendant-1")


@pytest.fixture
def admin_headers():
    return auth_headers_for("ADMIN", sub="admin-1")


@pytest.fixture
def master_headers():
    return auth_headers_for("MASTER", sub="master-1")


@pytest.fixture
def headers_for():
    """Build Authorization headers for arbitrary roles."""
    return auth_headers_for


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
