"""
Transactional email through the SendGrid v3 API.
Sending is best-effort: failures are logged and reported as False, never raised.
"""

from datetime import datetime, timezone
from html import escape
from typing import Optional
from inmobi.config import settings
from inmobi.models.message import Message
from inmobi.models.user import User, UserRole
from inmobi.services.external import ExternalServiceClient
from inmobi.services.i18n import translate, normalize_language, DEFAULT_LANGUAGE
from inmobi.utils.exceptions import ExternalServiceError
import httpx
import logging

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 150
COMPANY_ADDRESS = "c. de la Ribera 14, 08003 Barcelona"


def role_label(role: UserRole, language: str = DEFAULT_LANGUAGE) -> str:
    """Human readable role name shown in notification emails."""
    if role == UserRole.ADMIN:
        return translate("role.admin", language)
    if role == UserRole.AGENT:
        return translate("role.agent", language)
    return translate("role.user", language)


def message_preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    if len(content) <= length:
        return content
    return content[:length] + "..."


class EmailService(ExternalServiceClient):
    """SendGrid client for message notifications."""

    service_name = "SendGrid"

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.sendgrid_api_key
        super().__init__(
            settings.sendgrid_api_base,
            headers={"Authorization": f"Bearer {self.api_key}"} if self.api_key else None,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """
        Send one email.

        Returns:
            True when SendGrid accepted the message, False when the service is
            not configured or the call failed
        """
        if not self.is_configured:
            logger.warning(f"SENDGRID_API_KEY not set, skipping email to {to}")
            return False

        content = []
        if text:
            content.append({"type": "text/plain", "value": text})
        content.append({"type": "text/html", "value": html})

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": settings.email_from, "name": "Inmobi"},
            "subject": subject,
            "content": content,
        }

        try:
            await self.request("POST", "/v3/mail/send", json=payload)
        except ExternalServiceError as e:
            logger.error(f"Failed to send email to {to}: {e.detail}")
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return True

    def render_new_message(self, recipient: User, message: Message, sender: User) -> dict:
        """Build subject, HTML and plain-text bodies for a new-message notification."""
        language = normalize_language(recipient.preferred_language) or DEFAULT_LANGUAGE
        sender_name = sender.full_name or sender.username
        recipient_name = recipient.full_name or recipient.username
        role = role_label(sender.role, language)
        preview = message_preview(message.content)
        link = f"{settings.site_url.rstrip('/')}/dashboard?tab=messages"
        year = datetime.now(timezone.utc).year

        subject = translate("email.new_message.subject", language, sender=sender_name)
        greeting = translate("email.new_message.greeting", language, name=recipient_name)
        intro = translate("email.new_message.intro", language, sender=sender_name, role=role)
        cta = translate("email.new_message.cta", language)

        html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">Inmobi</h2>
  <p>{escape(greeting)}</p>
  <p>{escape(intro)}</p>
  <div style="background: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0;">
    <p><strong>Subject:</strong> {escape(message.subject)}</p>
    <p>{escape(preview)}</p>
  </div>
  <p><a href="{escape(link)}" style="background: #2563eb; color: #fff; padding: 10px 20px; border-radius: 6px; text-decoration: none;">{escape(cta)}</a></p>
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;">
  <p style="color: #6b7280; font-size: 12px;">&copy; {year} Inmobi. All rights reserved.<br>{COMPANY_ADDRESS}</p>
</div>
""".strip()

        text = "\n\n".join([
            greeting,
            intro,
            f"Subject: {message.subject}",
            preview,
            f"{cta}: {link}",
            f"© {year} Inmobi. All rights reserved.\n{COMPANY_ADDRESS}",
        ])

        return {"subject": subject, "html": html, "text": text}

    async def send_new_message_notification(self, recipient: User, message: Message, sender: User) -> bool:
        """Tell ``recipient`` they have a new message from ``sender``."""
        rendered = self.render_new_message(recipient, message, sender)
        return await self.send_email(recipient.email, rendered["subject"], rendered["html"], rendered["text"])


def get_email_service() -> EmailService:
    return EmailService()
