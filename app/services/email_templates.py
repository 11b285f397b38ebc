from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from html import escape

from app.core.constants import ROLE_ARTIST
from app.services.mailer import InlineAttachment, OutgoingEmail

BRAND_NAME = "Rise Up Creators"
ACCENT_COLOR = "#FF3C2A"
APPROVED_COLOR = "#22c55e"
REJECTED_COLOR = "#ef4444"
TICKET_QR_CONTENT_ID = "ticket-qr"


def _wrap(body: str) -> str:
    return (
        '<div style="background: #000; color: #fff; padding: 20px; font-family: Arial, sans-serif;">'
        f"{body}"
        "</div>"
    )


def _panel(body: str) -> str:
    return f'<div style="background: #1a1a1a; padding: 15px; border-radius: 8px; margin: 20px 0;">{body}</div>'


def format_amount(value: Decimal) -> str:
    return f"₹{value.quantize(Decimal('0.01'))}"


def welcome_email(*, to: str, name: str, role: str) -> OutgoingEmail:
    if role == ROLE_ARTIST:
        role_label = "an artist"
        pitch = "You can now upload your music, create events, sell merch, and connect with your fans."
    else:
        role_label = "a fan"
        pitch = "Discover amazing music, follow your favorite artists, and enjoy exclusive content."
    html = _wrap(
        f'<h1 style="color: {ACCENT_COLOR};">Welcome to {BRAND_NAME}!</h1>'
        f"<p>Hi {escape(name)},</p>"
        f"<p>Thank you for joining {BRAND_NAME} as {role_label}!</p>"
        f"<p>{pitch}</p>"
        "<p>Get started by exploring the platform.</p>"
        f"<p>Best regards,<br>The {BRAND_NAME} Team</p>"
    )
    return OutgoingEmail(to=to, subject=f"Welcome to {BRAND_NAME}!", html=html)


def password_reset_email(*, to: str, code: str, ttl_minutes: int) -> OutgoingEmail:
    html = _wrap(
        f'<h1 style="color: {ACCENT_COLOR};">Reset Your Password</h1>'
        "<p>You requested a password reset. Use the code below:</p>"
        + _panel(f'<h2 style="color: {ACCENT_COLOR}; margin: 0; text-align: center;">{escape(code)}</h2>')
        + f"<p>This code expires in {ttl_minutes} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )
    return OutgoingEmail(to=to, subject=f"Reset Your Password - {BRAND_NAME}", html=html)


def order_confirmation_email(
    *,
    to: str,
    order_id: str,
    total_amount: Decimal,
    status: str,
    item_lines: list[tuple[str, int, Decimal]],
) -> OutgoingEmail:
    rows = "".join(
        f"<li>{escape(name)} &times; {qty} &mdash; {format_amount(unit_price * qty)}</li>"
        for name, qty, unit_price in item_lines
    )
    html = _wrap(
        f'<h1 style="color: {ACCENT_COLOR};">Order Confirmed!</h1>'
        f"<p>Your order #{escape(order_id)} has been confirmed.</p>"
        + _panel(
            (f"<ul>{rows}</ul>" if rows else "")
            + f"<p><strong>Total Amount:</strong> {format_amount(total_amount)}</p>"
            f"<p><strong>Status:</strong> {escape(status)}</p>"
        )
        + "<p>Thank you for your purchase!</p>"
    )
    return OutgoingEmail(to=to, subject=f"Order Confirmation - {BRAND_NAME}", html=html)


def ticket_email(
    *,
    to: str,
    event_title: str,
    event_date: datetime,
    location: str,
    ticket_id: str,
    qr_png: bytes,
) -> OutgoingEmail:
    html = _wrap(
        f'<h1 style="color: {ACCENT_COLOR};">Your Event Ticket</h1>'
        + _panel(
            f"<h2>{escape(event_title)}</h2>"
            f"<p><strong>Date:</strong> {event_date.strftime('%d %b %Y, %H:%M UTC')}</p>"
            f"<p><strong>Location:</strong> {escape(location)}</p>"
            f"<p><strong>Ticket ID:</strong> {escape(ticket_id)}</p>"
        )
        + '<div style="text-align: center; margin: 20px 0;">'
        f'<img src="cid:{TICKET_QR_CONTENT_ID}" alt="Ticket QR Code" style="max-width: 200px;">'
        "</div>"
        "<p>Present this QR code at the venue for entry.</p>"
    )
    attachment = InlineAttachment(filename="ticket-qr.png", content=qr_png, content_id=TICKET_QR_CONTENT_ID)
    return OutgoingEmail(
        to=to,
        subject=f"Your Ticket for {event_title}",
        html=html,
        attachments=(attachment,),
    )


def artist_verification_email(*, to: str, artist_name: str, approved: bool, reason: str | None) -> OutgoingEmail:
    if approved:
        heading = "Artist Verification Approved!"
        color = APPROVED_COLOR
        body = "<p>Congratulations! Your artist profile has been verified. You can now publish music and create content.</p>"
        subject = f"Artist Verification Approved - {BRAND_NAME}"
    else:
        heading = "Artist Verification Update"
        color = REJECTED_COLOR
        reason_text = f"Reason: {escape(reason)}" if reason else ""
        body = (
            f"<p>Your artist verification was not approved. {reason_text}</p>"
            "<p>You can reapply after addressing the issues.</p>"
        )
        subject = f"Artist Verification Update - {BRAND_NAME}"
    html = _wrap(
        f'<h1 style="color: {color};">{heading}</h1>'
        f"<p>Hi {escape(artist_name)},</p>"
        f"{body}"
        f"<p>Best regards,<br>The {BRAND_NAME} Team</p>"
    )
    return OutgoingEmail(to=to, subject=subject, html=html)
