from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.blogs import Blog
from app.db.models.users import User


class BlogsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, blog_id: UUID) -> Blog | None:
        return await session.get(Blog, blog_id)

    @staticmethod
    async def get_with_artist_name(session: AsyncSession, blog_id: UUID) -> tuple[Blog, str | None] | None:
        stmt = select(Blog, User.name).outerjoin(User, User.id == Blog.artist_id).where(Blog.id == blog_id)
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row[0], row[1]

    @staticmethod
    async def list_all(session: AsyncSession) -> list[tuple[Blog, str | None]]:
        stmt = select(Blog, User.name).outerjoin(User, User.id == Blog.artist_id).order_by(Blog.created_at.desc())
        result = await session.execute(stmt)
        return [(blog, name) for blog, name in result.all()]

    @staticmethod
    async def list_by_artist(session: AsyncSession, artist_id: UUID) -> list[Blog]:
        stmt = select(Blog).where(Blog.artist_id == artist_id).order_by(Blog.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, blog: Blog) -> Blog:
        session.add(blog)
        await session.flush()
        return blog

    @staticmethod
    async def update_fields(session: AsyncSession, blog: Blog, values: dict[str, Any]) -> Blog:
        for key, value in values.items():
            setattr(blog, key, value)
        await session.flush()
        return blog

    @staticmethod
    async def delete(session: AsyncSession, blog_id: UUID) -> int:
        result = await session.execute(delete(Blog).where(Blog.id == blog_id))
        return result.rowcount or 0
