from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.events import Event
from app.db.models.users import User

EVENT_DATE_WINDOWS = ("upcoming", "this-week", "this-month", "past")


class EventsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, event_id: UUID) -> Event | None:
        return await session.get(Event, event_id)

    @staticmethod
    async def list_by_ids(session: AsyncSession, event_ids: list[UUID]) -> list[Event]:
        if not event_ids:
            return []
        result = await session.execute(select(Event).where(Event.id.in_(tuple(set(event_ids)))))
        return list(result.scalars().all())

    @staticmethod
    async def list_by_artist(session: AsyncSession, artist_id: UUID) -> list[Event]:
        stmt = select(Event).where(Event.artist_id == artist_id).order_by(Event.date.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_filtered(
        session: AsyncSession,
        *,
        now_utc: datetime,
        search: str | None = None,
        location: str | None = None,
        date_window: str | None = None,
    ) -> list[tuple[Event, str | None]]:
        stmt = select(Event, User.name).outerjoin(User, User.id == Event.artist_id)
        if search:
            stmt = stmt.where(
                or_(
                    Event.title.icontains(search, autoescape=True),
                    Event.description.icontains(search, autoescape=True),
                    Event.location.icontains(search, autoescape=True),
                )
            )
        if location and location != "all-locations":
            stmt = stmt.where(Event.location.icontains(location, autoescape=True))

        if date_window == "this-week":
            stmt = stmt.where(Event.date >= now_utc, Event.date <= now_utc + timedelta(days=7))
        elif date_window == "this-month":
            stmt = stmt.where(Event.date >= now_utc, Event.date <= now_utc + timedelta(days=30))
        elif date_window == "past":
            stmt = stmt.where(Event.date < now_utc)
        else:
            stmt = stmt.where(Event.date >= now_utc)

        result = await session.execute(stmt.order_by(Event.date.asc()))
        return [(event, name) for event, name in result.all()]

    @staticmethod
    async def create(session: AsyncSession, *, event: Event) -> Event:
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def update_fields(session: AsyncSession, event: Event, values: dict[str, Any]) -> Event:
        for key, value in values.items():
            setattr(event, key, value)
        await session.flush()
        return event

    @staticmethod
    async def delete(session: AsyncSession, event_id: UUID) -> int:
        result = await session.execute(delete(Event).where(Event.id == event_id))
        return result.rowcount or 0

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Event.id)))
        return int(result.scalar_one() or 0)
