from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import VISIBILITY_PUBLIC
from app.db.models.songs import Song
from app.db.models.users import User

SONG_SORT_ORDERS = {
    "latest": (Song.created_at.desc(),),
    "popular": (Song.plays.desc(), Song.likes.desc()),
    "trending": (Song.plays.desc(), Song.created_at.desc()),
    "alphabetical": (Song.title.asc(),),
}


class SongsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, song_id: UUID) -> Song | None:
        return await session.get(Song, song_id)

    @staticmethod
    async def get_with_artist_name(session: AsyncSession, song_id: UUID) -> tuple[Song, str | None] | None:
        stmt = select(Song, User.name).outerjoin(User, User.id == Song.artist_id).where(Song.id == song_id)
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row[0], row[1]

    @staticmethod
    async def list_by_ids_with_artist_names(
        session: AsyncSession,
        song_ids: Sequence[UUID],
    ) -> list[tuple[Song, str | None]]:
        ids = tuple(set(song_ids))
        if not ids:
            return []
        stmt = select(Song, User.name).outerjoin(User, User.id == Song.artist_id).where(Song.id.in_(ids))
        result = await session.execute(stmt)
        return [(song, name) for song, name in result.all()]

    @staticmethod
    async def list_by_artist(session: AsyncSession, artist_id: UUID) -> list[Song]:
        stmt = select(Song).where(Song.artist_id == artist_id).order_by(Song.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_trending(session: AsyncSession, *, limit: int = 10) -> list[tuple[Song, str | None]]:
        stmt = (
            select(Song, User.name)
            .outerjoin(User, User.id == Song.artist_id)
            .where(Song.visibility == VISIBILITY_PUBLIC)
            .order_by(Song.plays.desc(), Song.likes.desc(), Song.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(song, name) for song, name in result.all()]

    @staticmethod
    async def list_public(
        session: AsyncSession,
        *,
        genre: str | None,
        sort: str,
        limit: int = 20,
    ) -> list[tuple[Song, str | None]]:
        stmt = (
            select(Song, User.name)
            .outerjoin(User, User.id == Song.artist_id)
            .where(Song.visibility == VISIBILITY_PUBLIC)
        )
        if genre and genre != "all":
            stmt = stmt.where(Song.genre.icontains(genre, autoescape=True))
        stmt = stmt.order_by(*SONG_SORT_ORDERS.get(sort, SONG_SORT_ORDERS["latest"])).limit(limit)
        result = await session.execute(stmt)
        return [(song, name) for song, name in result.all()]

    @staticmethod
    async def search(session: AsyncSession, *, query: str, limit: int = 50) -> list[Song]:
        stmt = (
            select(Song)
            .where(
                or_(
                    Song.title.icontains(query, autoescape=True),
                    Song.genre.icontains(query, autoescape=True),
                )
            )
            .order_by(Song.plays.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, song: Song) -> Song:
        session.add(song)
        await session.flush()
        return song

    @staticmethod
    async def update_fields(session: AsyncSession, song: Song, values: dict[str, Any]) -> Song:
        for key, value in values.items():
            setattr(song, key, value)
        await session.flush()
        return song

    @staticmethod
    async def delete(session: AsyncSession, song_id: UUID) -> int:
        result = await session.execute(delete(Song).where(Song.id == song_id))
        return result.rowcount or 0

    @staticmethod
    async def increment_plays(session: AsyncSession, *, song_id: UUID, new_listener: bool) -> int:
        stmt = (
            update(Song)
            .where(Song.id == song_id)
            .values(
                plays=Song.plays + 1,
                unique_listeners=Song.unique_listeners + (1 if new_listener else 0),
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def adjust_likes(session: AsyncSession, *, song_id: UUID, delta: int) -> int:
        stmt = update(Song).where(Song.id == song_id).values(likes=func.greatest(Song.likes + delta, 0))
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Song.id)))
        return int(result.scalar_one() or 0)

    @staticmethod
    async def sum_plays(session: AsyncSession) -> int:
        result = await session.execute(select(func.coalesce(func.sum(Song.plays), 0)))
        return int(result.scalar_one() or 0)
