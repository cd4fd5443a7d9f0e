"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src.celery_app import app as celery_app
from src.config import get_settings
from src.database import Base, create_db_engine, get_db
from src.main import app
from src.rate_limit import limiter
from src.models.card import Card
from src.services.auth import create_user
from src.services.board_service import BoardService
from src.services.card_service import CardService
from src.services.column_service import ColumnService
from src.services.realtime import get_notifier


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: str | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


class RecordingNotifier:
    """Change notifier that keeps published events in memory."""

    def __init__(self):
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [str(event.type) for event in self.events]


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/kanban", "/kanban_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Purge tasks run inline instead of going through the broker
celery_app.conf.task_always_eager = True


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function", autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Point attachment storage at a per-test temporary directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(get_settings(), "upload_dir", str(directory))
    return directory


@pytest.fixture(scope="function", autouse=True)
def rate_limiter(monkeypatch):
    """Rate limiting is off unless a test switches it on; counters start empty."""
    monkeypatch.setattr(limiter, "enabled", False)
    limiter.reset()
    return limiter


@pytest.fixture
def notifier():
    """Change notifier that records every published event."""
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db, notifier, monkeypatch):
    """Create a test client with database and notifier overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    # The WebSocket endpoint opens its own session
    monkeypatch.setattr("src.api.websocket.SessionLocal", TestingSessionLocal)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, first_name: str) -> AuthHeaders:
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "password": "testpass123",
            "first_name": first_name,
            "last_name": "Tester",
        },
    )
    assert response.status_code == 201
    data = response.json()
    token = data["access_token"]
    user_id = data["user"]["id"]

    return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user_id, email=email)


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com", "Test")


@pytest.fixture
def other_auth_headers(client):
    """A second user who owns nothing the first user owns."""
    return register(client, "other@example.com", "Other")


@pytest.fixture
def board(client, auth_headers):
    """A board with the default columns, as returned by the detail endpoint."""
    response = client.post("/api/v1/boards", headers=auth_headers, json={"title": "Sprint"})
    assert response.status_code == 201
    response = client.get(f"/api/v1/boards/{response.json()['id']}", headers=auth_headers)
    assert response.status_code == 200
    return response.json()


# --- Service-level fixtures ---


@pytest.fixture
def user(db):
    return create_user(db, "owner@example.com", "ownerpass123", "Olive", "Owner")


@pytest.fixture
def stranger(db):
    return create_user(db, "stranger@example.com", "strangerpass123")


@pytest.fixture
def board_service(db, notifier):
    return BoardService(db, notifier)


@pytest.fixture
def column_service(db, notifier):
    return ColumnService(db, notifier)


@pytest.fixture
def card_service(db, notifier):
    return CardService(db, notifier)


@pytest.fixture
def owned_board(board_service, user):
    """A board owned by ``user`` with the three default columns."""
    return board_service.create_board(user.id, "Roadmap")


@pytest.fixture
def active_positions(db):
    """Read back (title, position) of a column's active cards, in position order."""

    def read(column_id: str) -> list[tuple[str, int]]:
        db.expire_all()
        cards = (
            db.query(Card)
            .filter(Card.column_id == column_id, Card.archived.is_(False))
            .order_by(Card.position)
            .all()
        )
        return [(card.title, card.position) for card in cards]

    return read
