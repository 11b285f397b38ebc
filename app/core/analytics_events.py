from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.analytics_repo import AnalyticsRepo

ACTION_PLAY = "play"
ACTION_LIKE = "like"
ACTION_SHARE = "share"
ACTION_PURCHASE = "purchase"
ACTION_REVIEW = "review"
ACTION_FOLLOW = "follow"
ACTION_UNFOLLOW = "unfollow"
ACTION_SUBSCRIBE = "subscribe"
ACTION_AD_IMPRESSION = "ad_impression"
ACTION_AD_CLICK = "ad_click"
ACTION_AD_COMPLETE = "ad_complete"
ACTION_SEARCH = "search"
ACTION_VIEW = "view"

ANALYTICS_ACTIONS = (
    ACTION_PLAY,
    ACTION_LIKE,
    ACTION_SHARE,
    ACTION_PURCHASE,
    ACTION_REVIEW,
    ACTION_FOLLOW,
    ACTION_UNFOLLOW,
    ACTION_SUBSCRIBE,
    ACTION_AD_IMPRESSION,
    ACTION_AD_CLICK,
    ACTION_AD_COMPLETE,
    ACTION_SEARCH,
    ACTION_VIEW,
)

CONTEXT_HOME = "home"
CONTEXT_PROFILE = "profile"
CONTEXT_DISCOVER = "discover"
CONTEXT_PLAYER = "player"
CONTEXT_CART = "cart"
CONTEXT_ADMIN = "admin"

ANALYTICS_CONTEXTS = (
    CONTEXT_HOME,
    CONTEXT_PROFILE,
    CONTEXT_DISCOVER,
    CONTEXT_PLAYER,
    CONTEXT_CART,
    CONTEXT_ADMIN,
)


async def emit_analytics_event(
    session: AsyncSession,
    *,
    action: str,
    context: str,
    happened_at: datetime,
    user_id: UUID | None = None,
    artist_id: UUID | None = None,
    song_id: UUID | None = None,
    merch_id: UUID | None = None,
    event_id: UUID | None = None,
    value: Decimal | None = None,
    metadata: dict[str, object] | None = None,
) -> None:
    if action not in ANALYTICS_ACTIONS:
        raise ValueError(f"unknown analytics action: {action}")
    if context not in ANALYTICS_CONTEXTS:
        raise ValueError(f"unknown analytics context: {context}")
    await AnalyticsRepo.create_event(
        session,
        action=action,
        context=context,
        user_id=user_id,
        artist_id=artist_id,
        song_id=song_id,
        merch_id=merch_id,
        event_id=event_id,
        value=value,
        metadata=metadata or {},
        happened_at=happened_at,
    )
