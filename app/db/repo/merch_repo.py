from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.merch import Merch
from app.db.models.users import User

MERCH_SORT_ORDERS = {
    "price-low": (Merch.price.asc(),),
    "price-high": (Merch.price.desc(),),
    "newest": (Merch.created_at.desc(),),
    "popular": (Merch.orders_count.desc(), Merch.created_at.desc()),
}


class MerchRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, merch_id: UUID) -> Merch | None:
        return await session.get(Merch, merch_id)

    @staticmethod
    async def list_by_ids(session: AsyncSession, merch_ids: list[UUID]) -> list[Merch]:
        if not merch_ids:
            return []
        result = await session.execute(select(Merch).where(Merch.id.in_(tuple(set(merch_ids)))))
        return list(result.scalars().all())

    @staticmethod
    async def list_by_artist(session: AsyncSession, artist_id: UUID) -> list[Merch]:
        stmt = select(Merch).where(Merch.artist_id == artist_id).order_by(Merch.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_filtered(
        session: AsyncSession,
        *,
        search: str | None = None,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort: str | None = None,
    ) -> list[tuple[Merch, str | None]]:
        stmt = select(Merch, User.name).outerjoin(User, User.id == Merch.artist_id)
        if search:
            stmt = stmt.where(
                or_(
                    Merch.name.icontains(search, autoescape=True),
                    Merch.description.icontains(search, autoescape=True),
                )
            )
        if category and category != "all-categories":
            stmt = stmt.where(Merch.category.icontains(category, autoescape=True))
        if min_price is not None:
            stmt = stmt.where(Merch.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Merch.price <= max_price)
        order = MERCH_SORT_ORDERS.get(sort or "", (Merch.created_at.desc(),))
        result = await session.execute(stmt.order_by(*order))
        return [(item, name) for item, name in result.all()]

    @staticmethod
    async def create(session: AsyncSession, *, merch: Merch) -> Merch:
        session.add(merch)
        await session.flush()
        return merch

    @staticmethod
    async def update_fields(session: AsyncSession, merch: Merch, values: dict[str, Any]) -> Merch:
        for key, value in values.items():
            setattr(merch, key, value)
        await session.flush()
        return merch

    @staticmethod
    async def delete(session: AsyncSession, merch_id: UUID) -> int:
        result = await session.execute(delete(Merch).where(Merch.id == merch_id))
        return result.rowcount or 0

    @staticmethod
    async def increment_orders_count(session: AsyncSession, *, merch_id: UUID, qty: int) -> int:
        stmt = update(Merch).where(Merch.id == merch_id).values(orders_count=Merch.orders_count + qty)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Merch.id)))
        return int(result.scalar_one() or 0)
