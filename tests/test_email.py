"""
Tests for the SMTP-backed email service.
"""

import smtplib
from unittest.mock import patch

import pytest

from taskflow.config.email import EmailDeliveryError, EmailService


@pytest.fixture
def smtp():
    with patch("taskflow.config.email.smtplib.SMTP") as mock_smtp:
        yield mock_smtp


def sent_message(smtp):
    server = smtp.return_value.__enter__.return_value
    server.sendmail.assert_called_once()
    from_addr, to_addr, raw = server.sendmail.call_args.args
    return from_addr, to_addr, raw


class TestEmailService:
    def test_reset_email_contains_link(self, smtp):
        service = EmailService()
        service.send_reset_password_email("ada@mail.com", "abc123")

        _, to_addr, raw = sent_message(smtp)
        assert to_addr == "ada@mail.com"
        assert "Subject: Reset Your Password" in raw
        assert "http://localhost:5173/reset-password?token=abc123" in raw

        server = smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with(service.username, service.password)

    def test_welcome_email(self, smtp):
        EmailService().send_welcome_email("ada@mail.com", "Ada")

        _, _, raw = sent_message(smtp)
        assert "Subject: Welcome to Todo App" in raw
        assert "Hello Ada" in raw

    def test_password_changed_email(self, smtp):
        EmailService().send_password_changed_email("ada@mail.com", "Ada")

        _, _, raw = sent_message(smtp)
        assert "Subject: Your Password Was Updated" in raw

    def test_authentication_failure(self, smtp):
        smtp.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(EmailDeliveryError, match="authentication failed"):
            EmailService().send_welcome_email("ada@mail.com", "Ada")

    def test_connection_failure(self, smtp):
        smtp.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(EmailDeliveryError, match="Cannot connect"):
            EmailService().send_welcome_email("ada@mail.com", "Ada")

    def test_verify_connection(self, smtp):
        assert EmailService().verify_connection() is True

        smtp.side_effect = OSError("unreachable")
        assert EmailService().verify_connection() is False

    @pytest.mark.parametrize("step", ["ehlo", "starttls", "login"])
    def test_connection_is_closed_when_handshake_fails(self, smtp, step):
        server = smtp.return_value.__enter__.return_value
        getattr(server, step).side_effect = smtplib.SMTPException(f"{step} rejected")

        with pytest.raises(EmailDeliveryError):
            EmailService().send_welcome_email("ada@mail.com", "Ada")

        smtp.return_value.__exit__.assert_called_once()
        server.sendmail.assert_not_called()

    def test_verify_connection_closes_on_bad_credentials(self, smtp):
        smtp.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")

        assert EmailService().verify_connection() is False
        smtp.return_value.__exit__.assert_called_once()
