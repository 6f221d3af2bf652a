"""
Shared fixtures for the portal tests.

Every test runs against its own SQLite file and a recording mailer, so
no test touches the network or a database of another test.
"""

import asyncio
import smtplib
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from accounting_portal_api.app.core.config import settings
from accounting_portal_api.app.core.db import init_db
from accounting_portal_api.app.core.security import create_access_token
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.notification_service import EmailMessage, NotificationService


STAFF_TOKEN = "staff-test-token"


class RecordingMailer:
    """Mailer double that keeps sent messages and can be told to fail."""

    def __init__(self, configured: bool = True, fail: bool = False):
        self.configured = configured
        self.fail = fail
        self.sent: List[EmailMessage] = []

    def is_configured(self) -> bool:
        return self.configured

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise smtplib.SMTPException("SMTP server unavailable")
        self.sent.append(message)


def run(coro):
    """Run a service coroutine to completion."""
    return asyncio.run(coro)


def make_token(sub: str, email: Optional[str] = None, name: Optional[str] = None, role: str = "client") -> str:
    claims = {"sub": sub, "role": role}
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    return create_access_token(claims)


@pytest.fixture(autouse=True)
def temp_database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "portal.db"))
    monkeypatch.setattr(settings, "secret_key", "test-secret")
    monkeypatch.setattr(settings, "staff_api_token", STAFF_TOKEN)
    monkeypatch.setattr(settings, "enforce_submission_lock", True)
    monkeypatch.setattr(settings, "admin_email", "office@example.com")
    init_db()
    yield tmp_path / "portal.db"


@pytest.fixture(autouse=True)
def mailer(monkeypatch):
    recording = RecordingMailer()
    monkeypatch.setattr(NotificationService, "mailer", recording)
    return recording


@pytest.fixture
def user():
    return UserContext(user_id="u1", email="una@example.com", display_name="Una Client")


@pytest.fixture
def other_user():
    return UserContext(user_id="u2", email="otto@example.com", display_name="Otto Other")


@pytest.fixture
def staff():
    return UserContext(user_id="staff-1", display_name="Sam Staff", role="staff")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token('u1', 'una@example.com', 'Una Client')}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {make_token('u2', 'otto@example.com', 'Otto Other')}"}


@pytest.fixture
def staff_headers():
    return {"Authorization": f"Bearer {STAFF_TOKEN}"}


@pytest.fixture
def client():
    from accounting_portal_api.app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def payment_plan():
    return {"planType": "fortnightly", "amount": 500, "agreeToDeclaration": True}
