"""
Tests for the forgot-password / reset-password lifecycle.
"""

from datetime import datetime, timedelta, timezone

import pytest

from taskflow.database.connection import SessionLocal
from taskflow.models.user import User

from conftest import signup

GENERIC = "If an account with that email exists, a password reset link has been sent"


def request_reset(client, email="ada@mail.com"):
    return client.post("/api/auth/forgot-password", json={"email": email})


def stored_user(email="ada@mail.com"):
    with SessionLocal() as db:
        return db.query(User).filter(User.email == email).one()


class TestForgotPassword:
    def test_existing_and_unknown_accounts_get_identical_responses(self, client, mailer):
        signup(client)

        existing = request_reset(client, "ada@mail.com")
        unknown = request_reset(client, "nobody@mail.com")

        assert existing.status_code == unknown.status_code == 200
        assert existing.content == unknown.content
        assert existing.json() == {"success": True, "message": GENERIC}
        assert len(mailer.of_kind("reset")) == 1

    def test_stores_token_with_one_hour_expiry(self, client, mailer):
        signup(client)
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        request_reset(client, " ADA@mail.com")

        user = stored_user()
        assert len(user.reset_token) == 64
        int(user.reset_token, 16)
        expires = user.reset_token_expires.replace(tzinfo=None)
        assert timedelta(minutes=59) < expires - before <= timedelta(minutes=61)
        assert mailer.of_kind("reset")[0]["reset_token"] == user.reset_token

    def test_missing_email(self, client):
        resp = client.post("/api/auth/forgot-password", json={})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Valid email is required"}

    @pytest.mark.parametrize("body", [None, "null"])
    def test_missing_or_null_body(self, client, body):
        resp = client.post(
            "/api/auth/forgot-password", content=body, headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Valid email is required"}

    def test_non_string_email(self, client):
        resp = client.post("/api/auth/forgot-password", json={"email": 42})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Valid email is required"

    def test_send_failure_is_reported(self, client, mailer):
        signup(client)
        mailer.fail = True

        resp = request_reset(client)
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "Failed to send reset password email."}


class TestResetPassword:
    def issue_token(self, client, mailer):
        signup(client)
        request_reset(client)
        return mailer.of_kind("reset")[-1]["reset_token"]

    def test_reset_changes_password(self, make_client, mailer):
        client = make_client()
        token = self.issue_token(client, mailer)

        resp = client.post(
            "/api/auth/reset-password",
            json={"resetToken": token, "password": "newpass1", "confirmPassword": "newpass1"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Password reset successfully"}

        user = stored_user()
        assert user.reset_token is None
        assert user.reset_token_expires is None
        assert mailer.of_kind("password_changed")[0]["to"] == "ada@mail.com"

        old = make_client().post("/api/auth/login", json={"email": "ada@mail.com", "password": "secret1"})
        new = make_client().post("/api/auth/login", json={"email": "ada@mail.com", "password": "newpass1"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_token_is_single_use(self, client, mailer):
        token = self.issue_token(client, mailer)
        body = {"resetToken": token, "password": "newpass1"}

        assert client.post("/api/auth/reset-password", json=body).status_code == 200

        again = client.post("/api/auth/reset-password", json=body)
        assert again.status_code == 400
        assert again.json()["message"] == "Invalid or expired reset token"

    def test_expired_token_fails_like_unknown_token(self, client, mailer):
        token = self.issue_token(client, mailer)
        with SessionLocal() as db:
            user = db.query(User).filter(User.reset_token == token).one()
            user.reset_token_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
            db.commit()

        expired = client.post("/api/auth/reset-password", json={"resetToken": token, "password": "newpass1"})
        unknown = client.post("/api/auth/reset-password", json={"resetToken": "f" * 64, "password": "newpass1"})

        assert expired.status_code == unknown.status_code == 400
        assert expired.content == unknown.content

    def test_validation_order(self, client):
        missing = client.post("/api/auth/reset-password", json={"password": "newpass1"})
        assert missing.status_code == 400
        assert missing.json()["message"] == "Reset token and new password are required"

        short = client.post("/api/auth/reset-password", json={"resetToken": "abc", "password": "123"})
        assert short.json()["message"] == "Password must be at least 6 characters long"

        mismatch = client.post(
            "/api/auth/reset-password",
            json={"resetToken": "abc", "password": "newpass1", "confirmPassword": "newpass2"},
        )
        assert mismatch.json()["message"] == "Passwords do not match"

    def test_confirmation_email_failure_keeps_new_password(self, make_client, mailer):
        client = make_client()
        token = self.issue_token(client, mailer)
        mailer.fail = True

        resp = client.post("/api/auth/reset-password", json={"resetToken": token, "password": "newpass1"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["message"] == "Password changed but confirmation email could not be sent."

        login = make_client().post("/api/auth/login", json={"email": "ada@mail.com", "password": "newpass1"})
        assert login.status_code == 200
