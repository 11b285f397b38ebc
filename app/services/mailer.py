from __future__ import annotations

from dataclasses import dataclass, field
from email.message import EmailMessage

import aiosmtplib
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)

SMTP_TIMEOUT_SECONDS = 20


class MailNotConfiguredError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class InlineAttachment:
    filename: str
    content: bytes
    content_id: str
    maintype: str = "image"
    subtype: str = "png"


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    attachments: tuple[InlineAttachment, ...] = field(default_factory=tuple)


def build_message(email: OutgoingEmail, *, sender: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = email.to
    message["Subject"] = email.subject
    message.set_content("This message requires an HTML capable mail client.")
    message.add_alternative(email.html, subtype="html")

    if email.attachments:
        html_part = message.get_payload()[-1]
        for attachment in email.attachments:
            html_part.add_related(
                attachment.content,
                maintype=attachment.maintype,
                subtype=attachment.subtype,
                cid=f"<{attachment.content_id}>",
                filename=attachment.filename,
            )
    return message


async def send_email(email: OutgoingEmail) -> None:
    """Deliver one message over SMTP, implicit TLS when SMTP_SECURE is set and STARTTLS otherwise."""
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_user:
        raise MailNotConfiguredError("smtp credentials are missing")

    await aiosmtplib.send(
        build_message(email, sender=settings.mail_from),
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_pass,
        use_tls=settings.smtp_secure,
        start_tls=not settings.smtp_secure,
        timeout=SMTP_TIMEOUT_SECONDS,
    )
    logger.info("email_sent", subject=email.subject)
