from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token, parse_resource_id
from app.api.schemas import SubscriptionCreateRequest
from app.api.serializers import subscription_view
from app.core.constants import DEFAULT_CURRENCY, SUBSCRIPTION_PERIOD_DAYS
from app.db.models import Subscription
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.analytics import AnalyticsService

router = APIRouter(tags=["subscriptions"])
logger = structlog.get_logger(__name__)


@router.get("/api/subscriptions/me")
async def my_subscriptions(user: AuthUser = Depends(authenticate_token)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        subscriptions = await SubscriptionsRepo.list_by_fan(session, user.id)
    return [subscription_view(subscription) for subscription in subscriptions]


@router.post("/api/subscriptions")
async def create_subscription(
    payload: SubscriptionCreateRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, Any]:
    artist_id = parse_resource_id(payload.artist_id, not_found_message="Artist not found")
    now_utc = datetime.now(timezone.utc)

    async with SessionLocal.begin() as session:
        if await UsersRepo.get_artist(session, artist_id) is None:
            raise api_error(404, "E_NOT_FOUND", "Artist not found")

        subscription = await SubscriptionsRepo.create(
            session,
            subscription=Subscription(
                fan_id=user.id,
                artist_id=artist_id,
                tier=payload.plan,
                amount=payload.amount,
                currency=DEFAULT_CURRENCY,
                start_date=now_utc,
                end_date=now_utc + timedelta(days=SUBSCRIPTION_PERIOD_DAYS),
                active=True,
            ),
        )
        await UsersRepo.add_artist_revenue(session, user_id=artist_id, subscriptions=payload.amount)
        await AnalyticsService.track_subscribe(
            session,
            user_id=user.id,
            artist_id=artist_id,
            tier=payload.plan,
            amount=payload.amount,
            happened_at=now_utc,
        )
        response = subscription_view(subscription)

    logger.info("subscription_created", fan_id=str(user.id), artist_id=str(artist_id), tier=payload.plan)
    return response
