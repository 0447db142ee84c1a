"""
Shared fixtures: in-memory SQLite database, recording email fake, test client.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_USERNAME", "noreply@mail.com")
os.environ.setdefault("SMTP_PASSWORD", "smtp-password")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

import pytest
from fastapi.testclient import TestClient

from taskflow.main import app
from taskflow.database.connection import Base, engine
from taskflow.config.email import EmailDeliveryError, get_email_service


class FakeEmailService:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def _deliver(self, kind, to_email, **details):
        if self.fail:
            raise EmailDeliveryError("Cannot connect to email server. Check SMTP host/port.")
        self.sent.append({"kind": kind, "to": to_email, **details})

    def send_welcome_email(self, to_email, name):
        self._deliver("welcome", to_email, name=name)

    def send_reset_password_email(self, to_email, reset_token):
        self._deliver("reset", to_email, reset_token=reset_token)

    def send_password_changed_email(self, to_email, name):
        self._deliver("password_changed", to_email, name=name)

    def of_kind(self, kind):
        return [mail for mail in self.sent if mail["kind"] == kind]


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def mailer():
    fake = FakeEmailService()
    app.dependency_overrides[get_email_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture
def client(mailer):
    return TestClient(app)


@pytest.fixture
def make_client(mailer):
    """Factory for additional clients with their own cookie jars."""
    return lambda: TestClient(app)


def signup(client, name="Ada", email="ada@mail.com", password="secret1", **extra):
    body = {"name": name, "email": email, "password": password, **extra}
    return client.post("/api/auth/signup", json=body)
