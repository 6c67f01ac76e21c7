"""
Test Configuration and Utilities

- Test environment (secret key, fast bcrypt, no email) set before app imports
- Per-test SQLite database
- API client and authenticated user fixtures
"""

import os

os.environ["SECRET_KEY"] = "test-secret-key-for-aisync-account-service-0123456789"
os.environ["TESTING"] = "true"
os.environ["DEBUG"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from typing import Dict, Any

from fastapi.testclient import TestClient

from api.app import app
from database import async_db_engine


TEST_PASSWORD = "Abcdef1"


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def test_database(tmp_path):
    """Point the engine at a fresh SQLite file for one test."""
    original_url = async_db_engine._url
    async_db_engine.configure(f"sqlite+aiosqlite:///{tmp_path / 'aisync_test.db'}")
    yield async_db_engine
    async_db_engine.configure(original_url)


@pytest.fixture
async def db_session(test_database):
    """Async session on an initialized test database."""
    await test_database.init_db()
    async with test_database.session_factory() as session:
        yield session
    await test_database.close()


# ============================================================================
# API Client
# ============================================================================

@pytest.fixture
def client(test_database):
    """TestClient running the app lifespan; server errors come back as 500 responses."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def register_account(client):
    """POST /register helper: ``register_account(email, username, password=...)``."""
    def _register(email: str, username: str, password: str = TEST_PASSWORD):
        return client.post(
            "/api/auth/register",
            json={"email": email, "username": username, "password": password},
        )
    return _register


@pytest.fixture
def registered_user(register_account) -> Dict[str, Any]:
    """A registered account with its session token."""
    response = register_account("alice@example.com", "alice")
    assert response.status_code == 200, response.text
    data = response.json()
    return {
        "email": "alice@example.com",
        "username": "alice",
        "password": TEST_PASSWORD,
        "token": data["token"],
        "user": data["user"],
    }


@pytest.fixture
def auth_headers(registered_user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {registered_user['token']}"}


@pytest.fixture
def sent_emails(monkeypatch):
    """Record notification calls instead of sending them."""
    from utils.email import email_service

    sent = []

    def recorder(name):
        def record(**kwargs):
            sent.append((name, kwargs))
            return True
        return record

    for name in (
        "send_welcome_email",
        "send_password_reset_email",
        "send_password_changed_email",
        "send_two_factor_enabled_email",
        "send_two_factor_disabled_email",
        "send_email_verification_code",
        "send_email_changed_email",
    ):
        monkeypatch.setattr(email_service, name, recorder(name))

    return sent
