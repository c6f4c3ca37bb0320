"""
Pytest configuration and shared fixtures.

This module provides common fixtures for testing:
- an in-memory SQLite database, recreated for every test
- in-memory fakes for the SMTP mailer and avatar storage
- a FastAPI TestClient and helpers to register / verify / log in users
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test_jwt_secret_key_for_testing_only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_BASE_URL"] = "http://testserver"

from sqlmodel import Session, SQLModel  # noqa: E402

from app.core import storage_utils  # noqa: E402
from app.database import engine  # noqa: E402
from app.main import app  # noqa: E402
from app.routers import auth as auth_router  # noqa: E402


# =============================================================================
# Fakes
# =============================================================================

@dataclass
class SentEmail:
    to_email: str
    subject: str
    text_body: str
    html_body: str | None = None

    @property
    def verification_token(self) -> str:
        """Token at the end of the verification link."""
        return self.text_body.rstrip().rsplit("/", 1)[-1]


@dataclass
class FakeMailer:
    """Records messages instead of talking to SMTP."""

    sent: list[SentEmail] = field(default_factory=list)
    fail: bool = False

    def send_email(self, to_email, subject, text_body, html_body=None) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP server unreachable")
        self.sent.append(SentEmail(to_email, subject, text_body, html_body))

    def last_to(self, email: str) -> SentEmail:
        return [m for m in self.sent if m.to_email == email][-1]


@dataclass
class FakeStorage:
    """Stands in for Supabase Storage uploads."""

    objects: dict[str, bytes] = field(default_factory=dict)

    def upload(self, path: str, file_bytes: bytes, content_type: str) -> str:
        self.objects[path] = file_bytes
        return f"https://storage.test/{path}"


# =============================================================================
# Database / app fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_db() -> Generator[None, None, None]:
    """Fresh tables for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def mailer(monkeypatch) -> FakeMailer:
    fake = FakeMailer()
    monkeypatch.setattr(auth_router.service, "mailer", fake)
    return fake


@pytest.fixture(autouse=True)
def storage(monkeypatch) -> FakeStorage:
    fake = FakeStorage()
    monkeypatch.setattr(storage_utils, "upload_to_storage", fake.upload)
    return fake


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


# =============================================================================
# User helpers
# =============================================================================

@pytest.fixture
def test_config() -> dict:
    return {
        "email": "a@x.com",
        "password": "secret1",
        "other_email": "b@x.com",
        "other_password": "secret2",
    }


@pytest.fixture
def bearer() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a session token."""

    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def register_user(client, mailer) -> Callable[[str, str], str]:
    """Register and return the verification token that was emailed."""

    def _register(email: str, password: str) -> str:
        response = client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return mailer.last_to(email).verification_token

    return _register


@pytest.fixture
def login_user(client, register_user) -> Callable[[str, str], str]:
    """Register, verify and log in; return the session token."""

    def _login(email: str, password: str) -> str:
        verification_token = register_user(email, password)
        verified = client.get(f"/api/auth/verify/{verification_token}")
        assert verified.status_code == 200, verified.text

        response = client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _login


@pytest.fixture
def token(login_user, test_config) -> str:
    return login_user(test_config["email"], test_config["password"])


@pytest.fixture
def other_token(login_user, test_config) -> str:
    return login_user(test_config["other_email"], test_config["other_password"])
