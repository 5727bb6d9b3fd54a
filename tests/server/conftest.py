# tests/server/conftest.py
"""
Pytest fixtures for API tests
Each test gets its own SQLite file and app instance
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add paths for imports
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "server"))

from config import Settings  # noqa: E402
from main import create_app  # noqa: E402

TEST_SECRET = "test-secret-key"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{(tmp_path / 'admin.db').as_posix()}"


@pytest.fixture
def settings(db_url):
    """Non-demo settings: only the admin user, main node and trial license are seeded"""
    return Settings(
        DATABASE_URL=db_url,
        SECRET_KEY=TEST_SECRET,
        DEMO_MODE=False,
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(client):
    """Session on the running app's database, for asserting stored state"""
    session = client.app.state.database.session()
    yield session
    session.close()


def login(client, username: str, password: str) -> str:
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def admin_token(client):
    return login(client, "admin", "admin")


def _create_user(client, admin_token, username, role):
    response = client.post(
        "/api/users",
        json={"username": username, "password": f"{username}-pw", "role": role, "language": "en"},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 201, response.text
    return login(client, username, f"{username}-pw")


@pytest.fixture
def operator_token(client, admin_token):
    return _create_user(client, admin_token, "oscar", "operator")


@pytest.fixture
def viewer_token(client, admin_token):
    return _create_user(client, admin_token, "vera", "viewer")


@pytest.fixture
def admin_headers(admin_token):
    return auth_headers(admin_token)


@pytest.fixture
def operator_headers(operator_token):
    return auth_headers(operator_token)


@pytest.fixture
def viewer_headers(viewer_token):
    return auth_headers(viewer_token)
