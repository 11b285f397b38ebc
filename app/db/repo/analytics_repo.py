from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.analytics_events import AnalyticsEvent


class AnalyticsRepo:
    @staticmethod
    async def create_event(
        session: AsyncSession,
        *,
        action: str,
        context: str,
        user_id: UUID | None,
        artist_id: UUID | None = None,
        song_id: UUID | None = None,
        merch_id: UUID | None = None,
        event_id: UUID | None = None,
        value: Decimal | None = None,
        metadata: dict[str, object] | None = None,
        happened_at: datetime,
    ) -> AnalyticsEvent:
        event = AnalyticsEvent(
            action=action,
            context=context,
            user_id=user_id,
            artist_id=artist_id,
            song_id=song_id,
            merch_id=merch_id,
            event_id=event_id,
            value=value,
            metadata_=metadata or {},
            timestamp=happened_at,
        )
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def has_user_played_song(session: AsyncSession, *, user_id: UUID, song_id: UUID) -> bool:
        stmt = (
            select(AnalyticsEvent.id)
            .where(
                AnalyticsEvent.user_id == user_id,
                AnalyticsEvent.song_id == song_id,
                AnalyticsEvent.action == "play",
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_recent_played_song_ids(session: AsyncSession, *, user_id: UUID, limit: int = 10) -> list[UUID]:
        stmt = (
            select(AnalyticsEvent.song_id)
            .where(
                AnalyticsEvent.user_id == user_id,
                AnalyticsEvent.action == "play",
                AnalyticsEvent.song_id.is_not(None),
            )
            .order_by(AnalyticsEvent.timestamp.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        song_ids: list[UUID] = []
        for song_id in result.scalars().all():
            if song_id not in song_ids:
                song_ids.append(song_id)
        return song_ids

    @staticmethod
    async def count_actions_by_user_since(
        session: AsyncSession,
        *,
        user_id: UUID,
        since_utc: datetime,
    ) -> dict[str, int]:
        stmt = (
            select(AnalyticsEvent.action, func.count(AnalyticsEvent.id))
            .where(AnalyticsEvent.user_id == user_id, AnalyticsEvent.timestamp >= since_utc)
            .group_by(AnalyticsEvent.action)
        )
        result = await session.execute(stmt)
        return {str(action): int(count) for action, count in result.all()}

    @staticmethod
    async def count_actions_by_artist_since(
        session: AsyncSession,
        *,
        artist_id: UUID,
        since_utc: datetime,
    ) -> dict[str, int]:
        stmt = (
            select(AnalyticsEvent.action, func.count(AnalyticsEvent.id))
            .where(AnalyticsEvent.artist_id == artist_id, AnalyticsEvent.timestamp >= since_utc)
            .group_by(AnalyticsEvent.action)
        )
        result = await session.execute(stmt)
        return {str(action): int(count) for action, count in result.all()}
