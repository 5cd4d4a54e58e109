"""
Allergy Card Mailer - Email Service
Builds card emails and sends them over SMTP or the Resend API
"""
import asyncio
import base64
import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import List, Optional, Sequence

import httpx

from allergy_card.config import settings, ConfigurationError

logger = logging.getLogger(__name__)

EMAIL_FONT = "font-family:'Open Sans',Arial,Helvetica,sans-serif;line-height:1.5"


class DeliveryError(RuntimeError):
    """The mail transport or provider rejected the message"""


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "image/png"


def escape_html(text: Optional[str]) -> str:
    """Escape &, <, > (and quotes) in user-influenced text"""
    return html.escape(text or "", quote=True)


def build_text_card_html(card_text: str) -> str:
    """HTML body for a generated text card"""
    return f"""
      <div style="{EMAIL_FONT}">
        <p>Here is your AI-generated allergy card:</p>
        <pre style="white-space:pre-wrap;font-family:inherit;background:#f6f7f9;padding:12px;border-radius:8px">{escape_html(card_text)}</pre>
        <p style="margin-top:14px;color:#666">Tip: save this to Notes or print it to keep on hand.</p>
      </div>
    """


def build_image_card_html(greeting: str, public_url: Optional[str] = None) -> str:
    """HTML body for an image card; the PNG travels as an attachment"""
    link = ""
    if public_url:
        link = f'<p><a href="{escape_html(public_url)}">View / download the image</a></p>'
    return f"""
      <div style="{EMAIL_FONT}">
        <p>{escape_html(greeting)}</p>
        {link}
        <p>We've also attached the PNG.</p>
      </div>
    """


class EmailService:
    """Sends one message through the configured provider"""

    def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> Optional[str]:
        """
        Send an email.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: HTML body
            text_body: Optional plain-text alternative
            attachments: Optional binary attachments

        Returns:
            Provider message id, or None when the provider returns none

        Raises:
            ConfigurationError: provider or sender not configured
            DeliveryError: transport, auth or provider failure
        """
        if not settings.email_from:
            raise ConfigurationError("Missing EMAIL_FROM")

        attachments = list(attachments or [])
        provider = settings.email_provider.lower()

        if provider == "smtp":
            message_id = self._send_smtp(to, subject, html_body, text_body, attachments)
        elif provider == "resend":
            message_id = self._send_resend(to, subject, html_body, text_body, attachments)
        else:
            raise ConfigurationError(f"Unsupported EMAIL_PROVIDER: {settings.email_provider}")

        logger.info(f"Email sent via {provider}: id={message_id}")
        return message_id

    async def send_async(self, *args, **kwargs) -> Optional[str]:
        """send() on a worker thread; SMTP and the HTTP client here are blocking"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.send(*args, **kwargs))

    def _send_smtp(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str],
        attachments: List[Attachment],
    ) -> str:
        if not (settings.smtp_host and settings.smtp_user and settings.smtp_pass):
            raise ConfigurationError("Missing SMTP_HOST, SMTP_USER or SMTP_PASS")

        msg = EmailMessage()
        msg["From"] = settings.email_from
        msg["To"] = to
        msg["Subject"] = subject
        sender_domain = settings.email_from.rsplit("@", 1)[-1].strip("> ") or None
        msg["Message-ID"] = make_msgid(domain=sender_domain)

        msg.set_content(text_body or "Your allergy card is ready.")
        msg.add_alternative(html_body, subtype="html")

        for attachment in attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port,
                              timeout=settings.request_timeout_seconds) as server:
                if settings.smtp_use_tls:
                    server.starttls()
                server.login(settings.smtp_user, settings.smtp_pass)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery failed: {e}") from e

        return str(msg["Message-ID"])

    def _send_resend(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str],
        attachments: List[Attachment],
    ) -> Optional[str]:
        if not settings.resend_api_key:
            raise ConfigurationError("Missing RESEND_API_KEY")

        payload = {
            "from": settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body
        if attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                    "content_type": a.content_type,
                }
                for a in attachments
            ]

        try:
            with httpx.Client(timeout=settings.request_timeout_seconds) as client:
                response = client.post(
                    settings.resend_api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {settings.resend_api_key}"},
                )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Email API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            detail = data.get("message") if isinstance(data, dict) else None
            raise DeliveryError(f"Email API error {response.status_code}: {detail or response.text[:200]}")

        return data.get("id") if isinstance(data, dict) else None


# Singleton
_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get singleton email service"""
    global _service
    if _service is None:
        _service = EmailService()
    return _service
