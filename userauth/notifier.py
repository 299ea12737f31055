"""
Transactional email.

Failures are reported as a False return and logged; callers decide
whether that matters.
"""

import logging
import smtplib
from email.errors import MessageError
from email.mime.text import MIMEText
from typing import Optional

from userauth.config import get_settings

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome!"


class SmtpNotifier:
    """Sends plain-text mail through an SMTP server with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        sender: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username

    def send(self, to_email: str, subject: str, body: str) -> bool:
        """
        Send one message.

        Returns:
            bool: True if the server accepted the message, False otherwise
        """
        if not self.username or not self.password:
            logger.error("Email credentials not configured. Set SMTP_USERNAME and SMTP_PASSWORD.")
            return False

        try:
            message = MIMEText(body, "plain")
            message["From"] = self.sender
            message["To"] = to_email
            message["Subject"] = subject

            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (MessageError, ValueError) as e:
            logger.error("Could not build email to %r: %s", to_email, e)
            return False
        except smtplib.SMTPException as e:
            logger.error("SMTP error sending email to %s: %s", to_email, e)
            return False
        except OSError as e:
            logger.error("Could not reach mail server %s:%s: %s", self.host, self.port, e)
            return False

        logger.info("Email sent to %s", to_email)
        return True


def send_welcome_email(notifier: SmtpNotifier, email: str) -> bool:
    body = (
        "Hello!\n\n"
        f"Your account {email} has been created. You can now log in.\n\n"
        "---\n"
        "This is an automated notification. Please do not reply to this email.\n"
    )
    return notifier.send(email, WELCOME_SUBJECT, body)


def get_notifier() -> SmtpNotifier:
    """
    Dependency that builds the notifier from settings.
    """
    settings = get_settings()
    return SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        sender=settings.mail_from,
    )
