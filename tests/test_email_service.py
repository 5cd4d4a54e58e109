"""
Tests for email assembly and delivery
"""
import base64
import smtplib

import httpx
import pytest
from unittest.mock import patch, MagicMock

from allergy_card.config import ConfigurationError
from allergy_card.services.email_service import (
    Attachment,
    DeliveryError,
    EmailService,
    build_image_card_html,
    build_text_card_html,
    escape_html,
)

SMTP_SETTINGS = {
    "email_provider": "smtp",
    "email_from": "Cards <cards@example.com>",
    "smtp_host": "smtp.example.com",
    "smtp_port": 587,
    "smtp_user": "user",
    "smtp_pass": "secret",
    "smtp_use_tls": True,
}

RESEND_SETTINGS = {
    "email_provider": "resend",
    "email_from": "cards@example.com",
    "resend_api_key": "re_test",
    "resend_api_url": "https://api.resend.test/emails",
}

PNG = b"\x89PNG\r\n\x1a\nfake"


class TestHtmlEscaping:

    def test_escape(self):
        assert escape_html("<b>Tom & Jerry</b>") == "&lt;b&gt;Tom &amp; Jerry&lt;/b&gt;"
        assert escape_html(None) == ""

    def test_text_card_has_no_raw_user_brackets(self):
        html = build_text_card_html("Jo <script>alert(1)</script> & co")
        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt; &amp; co" in html

    def test_image_card_greeting_escaped(self):
        html = build_image_card_html("Hi <Jo>, your allergy card is ready.")
        assert "<Jo>" not in html
        assert "Hi &lt;Jo&gt;" in html
        assert "View / download" not in html

    def test_image_card_link(self):
        html = build_image_card_html("Hi", "https://res.cloudinary.com/demo/card.png")
        assert 'href="https://res.cloudinary.com/demo/card.png"' in html
        assert "View / download the image" in html


class TestSmtpDelivery:

    @pytest.fixture
    def smtp_server(self):
        with patch.multiple("allergy_card.services.email_service.settings", **SMTP_SETTINGS), \
                patch("allergy_card.services.email_service.smtplib.SMTP") as mock_smtp:
            server = MagicMock()
            mock_smtp.return_value.__enter__.return_value = server
            yield mock_smtp, server

    def test_send_with_attachment(self, smtp_server):
        mock_smtp, server = smtp_server

        message_id = EmailService().send(
            "a@b.com",
            "Your Allergy Card",
            "<p>Hi</p>",
            text_body="Hi",
            attachments=[Attachment("allergy-card-en.png", PNG, "image/png")],
        )

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=pytest.approx(15.0))
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "secret")

        msg = server.send_message.call_args.args[0]
        assert msg["To"] == "a@b.com"
        assert msg["Subject"] == "Your Allergy Card"
        assert message_id == msg["Message-ID"]
        assert message_id.endswith("@example.com>")

        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "allergy-card-en.png"
        assert attachments[0].get_content_type() == "image/png"
        assert attachments[0].get_content() == PNG

    def test_smtp_failure_is_delivery_error(self, smtp_server):
        _, server = smtp_server
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(DeliveryError):
            EmailService().send("a@b.com", "s", "<p>x</p>")

    def test_missing_sender(self):
        with patch.multiple("allergy_card.services.email_service.settings", **{**SMTP_SETTINGS, "email_from": ""}):
            with pytest.raises(ConfigurationError):
                EmailService().send("a@b.com", "s", "<p>x</p>")


class TestResendDelivery:

    def _client(self, response):
        client = MagicMock()
        client.post.return_value = response
        ctx = MagicMock()
        ctx.__enter__.return_value = client
        return ctx, client

    def test_send_returns_provider_id(self):
        response = httpx.Response(200, json={"id": "re_msg_1"})
        ctx, client = self._client(response)

        with patch.multiple("allergy_card.services.email_service.settings", **RESEND_SETTINGS), \
                patch("allergy_card.services.email_service.httpx.Client", return_value=ctx):
            message_id = EmailService().send(
                "a@b.com", "Subject", "<p>x</p>",
                attachments=[Attachment("allergy-card-fr.png", PNG)],
            )

        assert message_id == "re_msg_1"
        url = client.post.call_args.args[0]
        kwargs = client.post.call_args.kwargs
        assert url == "https://api.resend.test/emails"
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"
        payload = kwargs["json"]
        assert payload["to"] == ["a@b.com"]
        assert payload["attachments"][0]["filename"] == "allergy-card-fr.png"
        assert base64.b64decode(payload["attachments"][0]["content"]) == PNG
        assert "text" not in payload

    def test_missing_id_is_none(self):
        ctx, _ = self._client(httpx.Response(200, json={}))
        with patch.multiple("allergy_card.services.email_service.settings", **RESEND_SETTINGS), \
                patch("allergy_card.services.email_service.httpx.Client", return_value=ctx):
            assert EmailService().send("a@b.com", "s", "<p>x</p>") is None

    def test_provider_error(self):
        response = httpx.Response(422, json={"message": "Invalid `from` field"})
        ctx, _ = self._client(response)
        with patch.multiple("allergy_card.services.email_service.settings", **RESEND_SETTINGS), \
                patch("allergy_card.services.email_service.httpx.Client", return_value=ctx):
            with pytest.raises(DeliveryError, match="Invalid `from` field"):
                EmailService().send("a@b.com", "s", "<p>x</p>")

    def test_network_error(self):
        ctx, client = self._client(None)
        client.post.side_effect = httpx.ConnectError("unreachable")
        with patch.multiple("allergy_card.services.email_service.settings", **RESEND_SETTINGS), \
                patch("allergy_card.services.email_service.httpx.Client", return_value=ctx):
            with pytest.raises(DeliveryError):
                EmailService().send("a@b.com", "s", "<p>x</p>")


def test_unknown_provider():
    with patch.multiple("allergy_card.services.email_service.settings",
                        **{**SMTP_SETTINGS, "email_provider": "pigeon"}):
        with pytest.raises(ConfigurationError):
            EmailService().send("a@b.com", "s", "<p>x</p>")
