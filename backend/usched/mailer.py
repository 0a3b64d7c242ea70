from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from .config import RESET_TTL_MINUTES, Settings

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    pass


class Mailer:
    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to_email: str, subject: str, text: str, html: str | None = None) -> None:
        settings = self.settings
        if not settings.mail_configured:
            raise MailDeliveryError(
                "SMTP is not configured. Set SMTP_HOST, EMAIL_USER and EMAIL_PASS."
            )

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = settings.sender
        msg["To"] = to_email
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(settings.email_user, settings.email_pass)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"Email send failed: {exc}") from exc
        logger.info("Sent '%s' to %s", subject, to_email)


def credential_message(full_name: str, email: str, password: str) -> tuple[str, str]:
    subject = "Your U-SCHED account"
    text = (
        f"Hello {full_name},\n\n"
        "An account has been created for you on U-SCHED.\n\n"
        f"Email: {email}\n"
        f"Temporary password: {password}\n\n"
        "Please sign in and change your password.\n\n"
        "Regards,\nU-SCHED"
    )
    return subject, text


def reset_message(reset_link: str) -> tuple[str, str, str]:
    subject = "Password Reset"
    text = (
        "Hello!\n\n"
        "You are receiving this email because we received a password reset request "
        "for your account.\n\n"
        f"Reset your password here: {reset_link}\n\n"
        f"This password reset link will expire in {RESET_TTL_MINUTES} minutes.\n"
        "If you did not request a password reset, no further action is required.\n\n"
        "Regards,\nU-SCHED"
    )
    html = (
        "<p>Hello!</p>"
        "<p>You are receiving this email because we received a password reset request "
        "for your account.</p>"
        f'<p><a href="{reset_link}">Reset Password</a></p>'
        f"<p>This password reset link will expire in {RESET_TTL_MINUTES} minutes.<br>"
        "If you did not request a password reset, no further action is required.</p>"
        "<p>Regards,<br>U-SCHED</p>"
    )
    return subject, text, html
