from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import UUID

import aiosmtplib
import structlog

from app.db.repo.events_repo import EventsRepo
from app.db.repo.orders_repo import OrdersRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services import email_templates
from app.services.mailer import MailNotConfiguredError, OutgoingEmail, send_email
from app.services.password_reset import RESET_CODE_TTL_SECONDS
from app.services.ticket_qr import build_ticket_payload, decode_data_url, render_qr_data_url
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

STATUS_SENT = "sent"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


async def _deliver(email: OutgoingEmail, *, kind: str) -> str:
    try:
        await send_email(email)
    except MailNotConfiguredError:
        logger.warning("email_delivery_skipped", kind=kind, reason="smtp_not_configured")
        return STATUS_SKIPPED
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("email_delivery_failed", kind=kind)
        return STATUS_FAILED
    return STATUS_SENT


async def send_welcome_email_async(*, email: str, name: str, role: str) -> dict[str, str]:
    status = await _deliver(email_templates.welcome_email(to=email, name=name, role=role), kind="welcome")
    return {"status": status}


async def send_password_reset_email_async(*, email: str, code: str) -> dict[str, str]:
    message = email_templates.password_reset_email(
        to=email,
        code=code,
        ttl_minutes=RESET_CODE_TTL_SECONDS // 60,
    )
    return {"status": await _deliver(message, kind="password_reset")}


async def send_order_confirmation_async(*, order_id: str) -> dict[str, str]:
    async with SessionLocal.begin() as session:
        order = await OrdersRepo.get_by_id(session, UUID(order_id))
        if order is None:
            logger.warning("order_confirmation_skipped", order_id=order_id, reason="order_missing")
            return {"status": STATUS_SKIPPED}
        user = await UsersRepo.get_by_id(session, order.user_id)
        items = (await OrdersRepo.list_items(session, [order.id])).get(order.id, [])

    if user is None:
        logger.warning("order_confirmation_skipped", order_id=order_id, reason="user_missing")
        return {"status": STATUS_SKIPPED}

    message = email_templates.order_confirmation_email(
        to=user.email,
        order_id=str(order.id),
        total_amount=order.total_amount,
        status=order.status,
        item_lines=[(item.name, item.qty, item.unit_price) for item in items],
    )
    return {"status": await _deliver(message, kind="order_confirmation")}


async def issue_order_tickets_async(*, order_id: str) -> dict[str, object]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        order = await OrdersRepo.get_by_id(session, UUID(order_id))
        if order is None:
            logger.warning("ticket_issue_skipped", order_id=order_id, reason="order_missing")
            return {"status": STATUS_SKIPPED, "tickets": 0}
        user = await UsersRepo.get_by_id(session, order.user_id)
        items = (await OrdersRepo.list_items(session, [order.id])).get(order.id, [])
        event_ids = [item.event_id for item in items if item.event_id is not None]
        events = await EventsRepo.list_by_ids(session, event_ids)
        if not events or user is None:
            logger.warning("ticket_issue_skipped", order_id=order_id, reason="no_tickets")
            return {"status": STATUS_SKIPPED, "tickets": 0}

        qr_data_url = render_qr_data_url(
            build_ticket_payload(
                order_id=str(order.id),
                user_id=str(order.user_id),
                event_ids=[str(event.id) for event in events],
                total_amount=str(order.total_amount),
                issued_at=now_utc,
            )
        )
        await OrdersRepo.set_qr_ticket_url(session, order_id=order.id, qr_ticket_url=qr_data_url)
        recipient = user.email

    qr_png = decode_data_url(qr_data_url)
    sent = 0
    for event in events:
        message = email_templates.ticket_email(
            to=recipient,
            event_title=event.title,
            event_date=event.date,
            location=event.location,
            ticket_id=f"{order.id}-{event.id}",
            qr_png=qr_png,
        )
        if await _deliver(message, kind="ticket") == STATUS_SENT:
            sent += 1

    logger.info("order_tickets_issued", order_id=order_id, tickets=len(events), emails_sent=sent)
    return {"status": STATUS_SENT if sent == len(events) else STATUS_FAILED, "tickets": len(events)}


async def send_artist_verification_email_async(
    *,
    artist_id: str,
    approved: bool,
    reason: str | None,
) -> dict[str, str]:
    async with SessionLocal.begin() as session:
        user = await UsersRepo.get_by_id(session, UUID(artist_id))
    if user is None:
        logger.warning("artist_verification_email_skipped", artist_id=artist_id, reason="user_missing")
        return {"status": STATUS_SKIPPED}

    message = email_templates.artist_verification_email(
        to=user.email,
        artist_name=user.name,
        approved=approved,
        reason=reason,
    )
    return {"status": await _deliver(message, kind="artist_verification")}


@celery_app.task(name="app.workers.tasks.notifications.send_welcome_email")
def send_welcome_email(*, email: str, name: str, role: str) -> dict[str, str]:
    return asyncio.run(send_welcome_email_async(email=email, name=name, role=role))


@celery_app.task(name="app.workers.tasks.notifications.send_password_reset_email")
def send_password_reset_email(*, email: str, code: str) -> dict[str, str]:
    return asyncio.run(send_password_reset_email_async(email=email, code=code))


@celery_app.task(name="app.workers.tasks.notifications.send_order_confirmation")
def send_order_confirmation(*, order_id: str) -> dict[str, str]:
    return run_async_job(send_order_confirmation_async(order_id=order_id))


@celery_app.task(name="app.workers.tasks.notifications.issue_order_tickets")
def issue_order_tickets(*, order_id: str) -> dict[str, object]:
    return run_async_job(issue_order_tickets_async(order_id=order_id))


@celery_app.task(name="app.workers.tasks.notifications.send_artist_verification_email")
def send_artist_verification_email(*, artist_id: str, approved: bool, reason: str | None = None) -> dict[str, str]:
    return run_async_job(
        send_artist_verification_email_async(artist_id=artist_id, approved=approved, reason=reason)
    )
