"""Shared test fixtures for the mdnotes test suite.

Every test gets its own in-memory SQLite database, so no external services
are needed and tests are fully isolated. Service tests use the ``db``
session directly; API tests go through ``client``, an app built with
``create_app`` on top of the same kind of database.
"""

import pytest
from fastapi.testclient import TestClient

from mdnotes.core.config import Settings
from mdnotes.database import Database
from mdnotes.main import create_app
from mdnotes.repositories import UserRepository
from mdnotes.services import GroupService, MarkdownFileService

TEST_JWT_SECRET = "test-secret-key"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret_key=TEST_JWT_SECRET,
        log_format="text",
        log_level="WARNING",
    )


@pytest.fixture()
def database():
    """Fresh in-memory database with all tables created."""
    handle = Database("sqlite://")
    handle.create_all()
    yield handle
    handle.dispose()


@pytest.fixture()
def db(database):
    """Per-test database session."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture()
def user(db):
    u = UserRepository(db).create(email="alice@example.com", username="alice", password_hash=None)
    db.commit()
    return u


@pytest.fixture()
def other_user(db):
    u = UserRepository(db).create(email="bob@example.com", username="bob", password_hash=None)
    db.commit()
    return u


@pytest.fixture()
def files(db):
    return MarkdownFileService(db)


@pytest.fixture()
def groups(db):
    return GroupService(db)


@pytest.fixture()
def client(test_settings, database):
    """FastAPI TestClient bound to the per-test database."""
    app = create_app(test_settings, database=database)
    with TestClient(app) as c:
        yield c


def register(client, email="alice@example.com", username="alice", password="secret123") -> dict:
    """Register through the API and return ``{"Authorization": "Bearer ..."}``."""
    resp = client.post(
        "/api/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture()
def auth_headers(client) -> dict:
    """Valid JWT auth headers for a freshly registered user."""
    return register(client)


@pytest.fixture()
def other_headers(client) -> dict:
    return register(client, email="bob@example.com", username="bob")


def make_file(title: str = "Test Note", content: str = "# Test\n\nHello world.", **overrides) -> dict:
    """Factory for file creation payloads."""
    payload = {"title": title, "content": content}
    payload.update(overrides)
    return payload
