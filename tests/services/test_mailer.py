from __future__ import annotations

import pytest

from app.core.config import get_settings
from app.services import mailer
from app.services.mailer import InlineAttachment, MailNotConfiguredError, OutgoingEmail, build_message, send_email


@pytest.fixture
def smtp_settings(monkeypatch) -> None:
    settings = get_settings()
    monkeypatch.setattr(settings, "smtp_host", "smtp.mail.test")
    monkeypatch.setattr(settings, "smtp_port", 587)
    monkeypatch.setattr(settings, "smtp_user", "bot@riseup.test")
    monkeypatch.setattr(settings, "smtp_pass", "app-password")
    monkeypatch.setattr(settings, "smtp_secure", False)


def _capture_send(monkeypatch) -> list[tuple[object, dict]]:
    calls: list[tuple[object, dict]] = []

    async def _send(message, **kwargs):
        calls.append((message, kwargs))
        return {}, "OK"

    monkeypatch.setattr(mailer.aiosmtplib, "send", _send)
    return calls


async def test_send_email_uses_starttls_by_default(monkeypatch, smtp_settings) -> None:
    calls = _capture_send(monkeypatch)

    await send_email(OutgoingEmail(to="fan@mail.com", subject="Welcome", html="<p>Hi</p>"))

    message, kwargs = calls[0]
    assert message["To"] == "fan@mail.com"
    assert message["Subject"] == "Welcome"
    assert kwargs["hostname"] == "smtp.mail.test"
    assert kwargs["username"] == "bot@riseup.test"
    assert (kwargs["use_tls"], kwargs["start_tls"]) == (False, True)


async def test_send_email_uses_implicit_tls_when_secure(monkeypatch, smtp_settings) -> None:
    monkeypatch.setattr(get_settings(), "smtp_secure", True)
    monkeypatch.setattr(get_settings(), "smtp_port", 465)
    calls = _capture_send(monkeypatch)

    await send_email(OutgoingEmail(to="fan@mail.com", subject="Receipt", html="<p>Paid</p>"))

    _, kwargs = calls[0]
    assert kwargs["port"] == 465
    assert (kwargs["use_tls"], kwargs["start_tls"]) == (True, False)


async def test_send_email_without_credentials_raises(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "smtp_user", "")
    calls = _capture_send(monkeypatch)

    with pytest.raises(MailNotConfiguredError):
        await send_email(OutgoingEmail(to="fan@mail.com", subject="Welcome", html="<p>Hi</p>"))
    assert calls == []


def test_inline_attachment_is_related_to_html_part() -> None:
    email = OutgoingEmail(
        to="fan@mail.com",
        subject="Your Ticket",
        html='<img src="cid:ticket-qr">',
        attachments=(InlineAttachment(filename="ticket.png", content=b"\x89PNG", content_id="ticket-qr"),),
    )

    message = build_message(email, sender="noreply@riseup.test")

    related = [part for part in message.walk() if part.get("Content-ID") == "<ticket-qr>"]
    assert len(related) == 1
    assert related[0].get_content_type() == "image/png"
