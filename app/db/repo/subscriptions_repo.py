from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.subscriptions import Subscription


class SubscriptionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, subscription: Subscription) -> Subscription:
        session.add(subscription)
        await session.flush()
        return subscription

    @staticmethod
    async def list_by_fan(session: AsyncSession, fan_id: UUID) -> list[Subscription]:
        stmt = select(Subscription).where(Subscription.fan_id == fan_id).order_by(Subscription.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_by_artist(session: AsyncSession, artist_id: UUID) -> list[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.artist_id == artist_id)
            .order_by(Subscription.created_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def has_active(session: AsyncSession, *, fan_id: UUID, artist_id: UUID) -> bool:
        # end_date is advisory; only the active flag gates access.
        stmt = select(func.count(Subscription.id)).where(
            Subscription.fan_id == fan_id,
            Subscription.artist_id == artist_id,
            Subscription.active.is_(True),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0) > 0

    @staticmethod
    async def sum_amount(session: AsyncSession) -> Decimal:
        result = await session.execute(select(func.coalesce(func.sum(Subscription.amount), 0)))
        return Decimal(result.scalar_one())

