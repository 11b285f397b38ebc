from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, parse_resource_id, require_role
from app.api.schemas import VerifyArtistRequest
from app.api.serializers import artist_profile, user_public
from app.core.constants import ROLE_ADMIN, ROLE_ARTIST, ROLE_FAN
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from app.db.repo.orders_repo import OrdersRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.workers.dispatch import enqueue_task
from app.workers.tasks.notifications import send_artist_verification_email

router = APIRouter(tags=["admin"])
logger = structlog.get_logger(__name__)

ACTIVE_USERS_WINDOW_DAYS = 30


@router.get("/api/admin/dashboard")
async def admin_dashboard(_: AuthUser = Depends(require_role(ROLE_ADMIN))) -> dict[str, Any]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        users_by_role = await UsersRepo.count_by_role(session)
        verified_artists = await UsersRepo.count_verified_artists(session)
        active_users = await UsersRepo.count_active_since(
            session,
            since_utc=now_utc - timedelta(days=ACTIVE_USERS_WINDOW_DAYS),
        )
        total_songs = await SongsRepo.count_all(session)
        total_streams = await SongsRepo.sum_plays(session)
        total_events = await EventsRepo.count_all(session)
        total_merch = await MerchRepo.count_all(session)
        paid_items = await OrdersRepo.sum_paid_items_by_kind(session)
        subscription_revenue = await SubscriptionsRepo.sum_amount(session)

    merch_revenue = paid_items.get("merch", Decimal("0"))
    ticket_revenue = paid_items.get("tickets", Decimal("0"))
    return {
        "totalUsers": sum(users_by_role.values()),
        "totalFans": users_by_role.get(ROLE_FAN, 0),
        "totalArtists": users_by_role.get(ROLE_ARTIST, 0),
        "verifiedArtists": verified_artists,
        "totalSongs": total_songs,
        "totalStreams": total_streams,
        "totalEvents": total_events,
        "totalMerch": total_merch,
        "activeUsers": active_users,
        "revenue": {
            "subscriptions": str(subscription_revenue.quantize(Decimal("0.01"))),
            "merch": str(merch_revenue.quantize(Decimal("0.01"))),
            "events": str(ticket_revenue.quantize(Decimal("0.01"))),
            "total": str((subscription_revenue + merch_revenue + ticket_revenue).quantize(Decimal("0.01"))),
        },
    }


@router.get("/api/admin/pending-artists")
async def pending_artists(_: AuthUser = Depends(require_role(ROLE_ADMIN))) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        rows = await UsersRepo.list_pending_artists(session)
    return [{**user_public(user), "artistProfile": artist_profile(profile)} for user, profile in rows]


@router.post("/api/admin/verify-artist/{artist_id}")
async def verify_artist(
    artist_id: str,
    payload: VerifyArtistRequest,
    admin: AuthUser = Depends(require_role(ROLE_ADMIN)),
) -> dict[str, Any]:
    target_id = parse_resource_id(artist_id, not_found_message="Artist not found")
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, target_id)
        if artist is None:
            raise api_error(404, "E_NOT_FOUND", "Artist not found")
        account, profile = artist
        profile = await UsersRepo.update_artist_profile(
            session,
            profile,
            {"verified": payload.approved},
            updated_at=datetime.now(timezone.utc),
        )
        response = {
            "message": "Artist verified" if payload.approved else "Artist verification rejected",
            "artist": {**user_public(account), "artistProfile": artist_profile(profile)},
        }

    logger.info(
        "artist_verification_decided",
        artist_id=str(target_id),
        admin_id=str(admin.id),
        approved=payload.approved,
    )
    await enqueue_task(
        send_artist_verification_email,
        artist_id=str(target_id),
        approved=payload.approved,
        reason=payload.reason,
    )
    return response
