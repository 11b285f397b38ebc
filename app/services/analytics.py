from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import (
    ACTION_FOLLOW,
    ACTION_LIKE,
    ACTION_PLAY,
    ACTION_PURCHASE,
    ACTION_SEARCH,
    ACTION_SUBSCRIBE,
    ACTION_UNFOLLOW,
    ACTION_VIEW,
    CONTEXT_CART,
    CONTEXT_DISCOVER,
    CONTEXT_HOME,
    CONTEXT_PLAYER,
    CONTEXT_PROFILE,
    emit_analytics_event,
)
from app.db.repo.analytics_repo import AnalyticsRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo

logger = structlog.get_logger(__name__)

DEFAULT_ANALYTICS_WINDOW_DAYS = 30


class AnalyticsService:
    """Event log writes plus the denormalised counters they feed.

    Every tracker runs inside the caller's transaction, so the log row and the
    counter update commit or roll back together.
    """

    @staticmethod
    async def track_play(
        session: AsyncSession,
        *,
        user_id: UUID,
        song_id: UUID,
        artist_id: UUID,
        happened_at: datetime,
        context: str = CONTEXT_PLAYER,
    ) -> None:
        new_listener = not await AnalyticsRepo.has_user_played_song(session, user_id=user_id, song_id=song_id)
        await emit_analytics_event(
            session,
            action=ACTION_PLAY,
            context=context,
            user_id=user_id,
            artist_id=artist_id,
            song_id=song_id,
            metadata={"newListener": new_listener},
            happened_at=happened_at,
        )
        await SongsRepo.increment_plays(session, song_id=song_id, new_listener=new_listener)
        await UsersRepo.increment_artist_counters(session, user_id=artist_id, plays=1)

    @staticmethod
    async def track_like(
        session: AsyncSession,
        *,
        user_id: UUID,
        song_id: UUID,
        artist_id: UUID,
        liked: bool,
        happened_at: datetime,
        context: str = CONTEXT_PLAYER,
    ) -> None:
        delta = 1 if liked else -1
        await emit_analytics_event(
            session,
            action=ACTION_LIKE,
            context=context,
            user_id=user_id,
            artist_id=artist_id,
            song_id=song_id,
            metadata={"liked": liked},
            happened_at=happened_at,
        )
        await SongsRepo.adjust_likes(session, song_id=song_id, delta=delta)
        await UsersRepo.increment_artist_counters(session, user_id=artist_id, likes=delta)

    @staticmethod
    async def track_follow(
        session: AsyncSession,
        *,
        user_id: UUID,
        artist_id: UUID,
        following: bool,
        happened_at: datetime,
        context: str = CONTEXT_PROFILE,
    ) -> None:
        await emit_analytics_event(
            session,
            action=ACTION_FOLLOW if following else ACTION_UNFOLLOW,
            context=context,
            user_id=user_id,
            artist_id=artist_id,
            metadata={"following": following},
            happened_at=happened_at,
        )

    @staticmethod
    async def track_subscribe(
        session: AsyncSession,
        *,
        user_id: UUID,
        artist_id: UUID,
        tier: str,
        amount: Decimal,
        happened_at: datetime,
    ) -> None:
        await emit_analytics_event(
            session,
            action=ACTION_SUBSCRIBE,
            context=CONTEXT_PROFILE,
            user_id=user_id,
            artist_id=artist_id,
            value=amount,
            metadata={"tier": tier},
            happened_at=happened_at,
        )

    @staticmethod
    async def track_purchase(
        session: AsyncSession,
        *,
        user_id: UUID,
        order_id: UUID,
        amount: Decimal,
        order_type: str,
        happened_at: datetime,
        context: str = CONTEXT_CART,
    ) -> None:
        await emit_analytics_event(
            session,
            action=ACTION_PURCHASE,
            context=context,
            user_id=user_id,
            value=amount,
            metadata={"orderId": str(order_id), "type": order_type, "amount": str(amount)},
            happened_at=happened_at,
        )

    @staticmethod
    async def track_search(
        session: AsyncSession,
        *,
        user_id: UUID | None,
        query: str,
        results_count: int,
        happened_at: datetime,
        context: str = CONTEXT_DISCOVER,
    ) -> None:
        await emit_analytics_event(
            session,
            action=ACTION_SEARCH,
            context=context,
            user_id=user_id,
            value=Decimal(results_count),
            metadata={"query": query, "resultsCount": results_count},
            happened_at=happened_at,
        )

    @staticmethod
    async def track_view(
        session: AsyncSession,
        *,
        user_id: UUID | None,
        page: str,
        happened_at: datetime,
        artist_id: UUID | None = None,
        song_id: UUID | None = None,
        context: str = CONTEXT_HOME,
        metadata: dict[str, object] | None = None,
    ) -> None:
        await emit_analytics_event(
            session,
            action=ACTION_VIEW,
            context=context,
            user_id=user_id,
            artist_id=artist_id,
            song_id=song_id,
            metadata={"page": page, **(metadata or {})},
            happened_at=happened_at,
        )

    @staticmethod
    async def user_summary(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime,
        days: int = DEFAULT_ANALYTICS_WINDOW_DAYS,
    ) -> dict[str, int]:
        counts = await AnalyticsRepo.count_actions_by_user_since(
            session,
            user_id=user_id,
            since_utc=now_utc - timedelta(days=days),
        )
        return {
            "totalPlays": counts.get(ACTION_PLAY, 0),
            "totalLikes": counts.get(ACTION_LIKE, 0),
            "totalSearches": counts.get(ACTION_SEARCH, 0),
            "totalFollows": counts.get(ACTION_FOLLOW, 0),
            "totalActions": sum(counts.values()),
        }

    @staticmethod
    async def artist_summary(
        session: AsyncSession,
        *,
        artist_id: UUID,
        now_utc: datetime,
        days: int = DEFAULT_ANALYTICS_WINDOW_DAYS,
    ) -> dict[str, int]:
        counts = await AnalyticsRepo.count_actions_by_artist_since(
            session,
            artist_id=artist_id,
            since_utc=now_utc - timedelta(days=days),
        )
        return {
            "totalPlays": counts.get(ACTION_PLAY, 0),
            "totalLikes": counts.get(ACTION_LIKE, 0),
            "totalFollows": counts.get(ACTION_FOLLOW, 0),
            "newSubscribers": counts.get(ACTION_SUBSCRIBE, 0),
            "totalViews": counts.get(ACTION_VIEW, 0),
            "totalInteractions": sum(counts.values()),
        }
