import re
import smtplib
from contextlib import contextmanager
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from typing import Optional
from taskflow.config.settings import settings
import logging

logger = logging.getLogger(__name__)

class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the SMTP server"""

class EmailService:
    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL

    @contextmanager
    def _connect(self):
        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=10) as server:
            server.ehlo()
            server.starttls()
            server.login(self.username, self.password)
            yield server

    def verify_connection(self) -> bool:
        """Check that the SMTP server accepts our credentials"""
        try:
            with self._connect():
                pass
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email service is not configured properly: {str(e)}")
            return False

    def send_email(self, to_email: str, subject: str, html: str, text: Optional[str] = None):
        msg = MIMEMultipart('alternative')
        msg['From'] = formataddr((self.from_name, self.from_email))
        msg['To'] = to_email
        msg['Subject'] = subject

        msg.attach(MIMEText(text or re.sub(r'<[^>]*>', '', html), 'plain'))
        msg.attach(MIMEText(html, 'html'))

        try:
            with self._connect() as server:
                server.sendmail(self.from_email, to_email, msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {str(e)}")
            raise EmailDeliveryError("Email authentication failed. Use an app password instead of the account password.") from e
        except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected, OSError) as e:
            logger.error(f"Cannot connect to SMTP server {self.smtp_server}:{self.smtp_port}: {str(e)}")
            raise EmailDeliveryError("Cannot connect to email server. Check SMTP host/port.") from e
        except smtplib.SMTPException as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e

        logger.info(f"Email '{subject}' sent to {to_email}")

    def send_welcome_email(self, to_email: str, name: str):
        html = f"""\
        <div style="font-family: Arial; padding: 20px;">
            <h2 style="color:#4F46E5;">Welcome to Todo App</h2>
            <p>Hello {name}, your account has been created successfully.</p>
            <p>Start managing your tasks now.</p>
            <a href="{self.frontend_url}">Open App</a>
        </div>
        """

        text = f"""\
        Welcome to Todo App
        Hello {name}, your account has been created successfully.
        Open App: {self.frontend_url}
        """

        self.send_email(to_email, "Welcome to Todo App", html, text)

    def reset_password_url(self, reset_token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={reset_token}"

    def send_reset_password_email(self, to_email: str, reset_token: str):
        reset_url = self.reset_password_url(reset_token)

        html = f"""\
        <div style="font-family: Arial; padding: 20px;">
            <h2 style="color:#DC2626;">Reset Your Password</h2>
            <p>Click the link below to reset your password. It expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
            <p><a href="{reset_url}">Reset Password</a></p>
            <p>If the link doesn't work, open this address:</p>
            <p>{reset_url}</p>
        </div>
        """

        text = f"""\
        Reset Your Password
        Reset link: {reset_url}
        """

        self.send_email(to_email, "Reset Your Password", html, text)

    def send_password_changed_email(self, to_email: str, name: str):
        html = f"""\
        <div style="font-family: Arial; padding: 20px;">
            <h2 style="color:#059669;">Password Updated</h2>
            <p>Hello {name}, your password has been changed successfully.</p>
            <p>If you didn't make this change, please contact support immediately.</p>
        </div>
        """

        text = """\
        Your password was updated successfully.
        If this wasn't you, contact support immediately.
        """

        self.send_email(to_email, "Your Password Was Updated", html, text)

email_service = EmailService()

def get_email_service() -> EmailService:
    return email_service
