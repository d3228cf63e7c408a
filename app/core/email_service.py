"""
Outgoing email over SMTP.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from functools import lru_cache
from typing import Dict

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Notification channel: send(to, subject, html, text) -> {"message_id": ...}."""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def send(self, to: str, subject: str, html_body: str, text_body: str) -> Dict[str, str]:
        if not self.is_configured():
            logger.warning(f"Email service not configured. Email to {to} not sent (subject: {subject})")
            raise EmailDeliveryError("Email service not configured")

        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain="emp-mgmt.com")
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout
            ) as smtp:
                if self.settings.smtp_use_tls:
                    smtp.starttls()
                if self.settings.smtp_username:
                    smtp.login(self.settings.smtp_username, self.settings.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email send failed to {to}: {str(e)}")
            raise EmailDeliveryError(error_data={"reason": str(e)})

        logger.info(f"Email sent to {to}: {message['Message-ID']}")
        return {"message_id": message["Message-ID"]}


@lru_cache()
def get_email_service() -> EmailService:
    return EmailService()
