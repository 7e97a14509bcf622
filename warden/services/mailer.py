"""Outbound email for password reset links (SMTP)."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING
from urllib.parse import urlencode
from uuid import UUID

from warden.core.errors import DeliveryError

if TYPE_CHECKING:
    from warden.core.config import Settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset your password"


def build_reset_link(base_url: str, reset_token: str) -> str:
    """Reset form URL with the token as the `token` query parameter."""
    return f"{base_url.rstrip('/')}?{urlencode({'token': reset_token})}"


def build_reset_message(
    sender: str, recipient: str, reset_link: str, expires_minutes: int
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = RESET_SUBJECT
    message["From"] = sender
    message["To"] = recipient
    message.set_content(
        "We received a request to reset the password for your account.\n\n"
        f"Open this link to choose a new password (valid for {expires_minutes} minutes):\n"
        f"{reset_link}\n\n"
        "If you did not ask for this, you can ignore this email."
    )
    return message


class PasswordResetMailer:
    """Hands password reset emails to the configured SMTP server."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def configured(self) -> bool:
        return bool(self._settings.SMTP_HOST)

    def send_password_reset_email(self, user_id: UUID, email: str, reset_token: str) -> None:
        """
        Send the reset link to `email`. Raises DeliveryError if the SMTP exchange fails.

        Without SMTP_HOST nothing is sent; a warning is logged instead.
        """
        s = self._settings
        if not self.configured:
            logger.warning(
                "SMTP is not configured; password reset email not sent",
                extra={"user_id": str(user_id)},
            )
            return

        link = build_reset_link(s.PASSWORD_RESET_URL, reset_token)
        message = build_reset_message(s.SMTP_FROM, email, link, s.RESET_TOKEN_EXPIRE_MINUTES)
        try:
            with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SEC) as server:
                if s.SMTP_USE_TLS:
                    server.starttls()
                if s.SMTP_USERNAME and s.SMTP_PASSWORD is not None:
                    server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD.get_secret_value())
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Password reset email failed",
                extra={"user_id": str(user_id), "reason": str(e)[:200]},
            )
            raise DeliveryError("Failed to send reset password email.") from e

        logger.info("Password reset email sent", extra={"user_id": str(user_id)})
