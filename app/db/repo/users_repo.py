from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Text, func, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import ROLE_ARTIST
from app.db.models.artist_profiles import ArtistProfile
from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: UUID) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(session: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_ids(session: AsyncSession, user_ids: Sequence[UUID]) -> list[User]:
        ids = tuple(set(user_ids))
        if not ids:
            return []
        stmt = select(User).where(User.id.in_(ids))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        name: str,
        email: str,
        role: str,
        password_hash: str,
    ) -> User:
        user = User(
            name=name,
            email=email.strip().lower(),
            role=role,
            password_hash=password_hash,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def update_fields(session: AsyncSession, user: User, values: dict[str, Any]) -> User:
        for key, value in values.items():
            setattr(user, key, value)
        await session.flush()
        return user

    @staticmethod
    async def touch_last_login(session: AsyncSession, user_id: UUID, login_at: datetime) -> int:
        stmt = update(User).where(User.id == user_id).values(last_login_at=login_at)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def set_password_hash(session: AsyncSession, user_id: UUID, password_hash: str) -> int:
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def count_by_role(session: AsyncSession) -> dict[str, int]:
        stmt = select(User.role, func.count(User.id)).group_by(User.role)
        result = await session.execute(stmt)
        return {str(role): int(count) for role, count in result.all()}

    @staticmethod
    async def count_active_since(session: AsyncSession, *, since_utc: datetime) -> int:
        stmt = select(func.count(User.id)).where(User.last_login_at >= since_utc)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    # Artist profiles

    @staticmethod
    async def get_artist_profile(session: AsyncSession, user_id: UUID) -> ArtistProfile | None:
        return await session.get(ArtistProfile, user_id)

    @staticmethod
    async def create_artist_profile(session: AsyncSession, user_id: UUID) -> ArtistProfile:
        profile = ArtistProfile(
            user_id=user_id,
            bio="",
            social_links={},
            followers=[],
            total_plays=0,
            total_likes=0,
            trending_score=0,
            featured=False,
            verified=False,
        )
        session.add(profile)
        await session.flush()
        return profile

    @staticmethod
    async def get_artist(session: AsyncSession, user_id: UUID) -> tuple[User, ArtistProfile] | None:
        """Return an artist user with a profile, creating the default profile when missing."""
        user = await session.get(User, user_id)
        if user is None or user.role != ROLE_ARTIST:
            return None
        profile = await session.get(ArtistProfile, user_id)
        if profile is None:
            profile = await UsersRepo.create_artist_profile(session, user_id)
        return user, profile

    @staticmethod
    async def list_featured_artists(session: AsyncSession, *, limit: int = 6) -> list[tuple[User, ArtistProfile | None]]:
        stmt = (
            select(User, ArtistProfile)
            .join(ArtistProfile, ArtistProfile.user_id == User.id)
            .where(User.role == ROLE_ARTIST, ArtistProfile.featured.is_(True))
            .order_by(User.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        rows = [(user, profile) for user, profile in result.all()]
        if rows:
            return rows
        return await UsersRepo.list_artists(session, limit=limit)

    @staticmethod
    async def list_artists(session: AsyncSession, *, limit: int = 20) -> list[tuple[User, ArtistProfile | None]]:
        stmt = (
            select(User, ArtistProfile)
            .outerjoin(ArtistProfile, ArtistProfile.user_id == User.id)
            .where(User.role == ROLE_ARTIST)
            .order_by(User.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(user, profile) for user, profile in result.all()]

    @staticmethod
    async def search_artists(
        session: AsyncSession,
        *,
        query: str,
        limit: int = 20,
    ) -> list[tuple[User, ArtistProfile | None]]:
        stmt = (
            select(User, ArtistProfile)
            .outerjoin(ArtistProfile, ArtistProfile.user_id == User.id)
            .where(
                User.role == ROLE_ARTIST,
                User.name.icontains(query, autoescape=True),
            )
            .order_by(User.name.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(user, profile) for user, profile in result.all()]

    @staticmethod
    async def list_pending_artists(session: AsyncSession) -> list[tuple[User, ArtistProfile | None]]:
        stmt = (
            select(User, ArtistProfile)
            .outerjoin(ArtistProfile, ArtistProfile.user_id == User.id)
            .where(
                User.role == ROLE_ARTIST,
                func.coalesce(ArtistProfile.verified, False).is_(False),
            )
            .order_by(User.created_at.asc())
        )
        result = await session.execute(stmt)
        return [(user, profile) for user, profile in result.all()]

    @staticmethod
    async def count_verified_artists(session: AsyncSession) -> int:
        stmt = select(func.count(ArtistProfile.user_id)).where(ArtistProfile.verified.is_(True))
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def update_artist_profile(
        session: AsyncSession,
        profile: ArtistProfile,
        values: dict[str, Any],
        *,
        updated_at: datetime,
    ) -> ArtistProfile:
        for key, value in values.items():
            setattr(profile, key, value)
        profile.updated_at = updated_at
        await session.flush()
        return profile

    @staticmethod
    async def increment_artist_counters(
        session: AsyncSession,
        *,
        user_id: UUID,
        plays: int = 0,
        likes: int = 0,
    ) -> int:
        stmt = (
            update(ArtistProfile)
            .where(ArtistProfile.user_id == user_id)
            .values(
                total_plays=ArtistProfile.total_plays + plays,
                total_likes=func.greatest(ArtistProfile.total_likes + likes, 0),
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def add_artist_revenue(
        session: AsyncSession,
        *,
        user_id: UUID,
        merch: Decimal = Decimal("0"),
        events: Decimal = Decimal("0"),
        subscriptions: Decimal = Decimal("0"),
    ) -> int:
        stmt = (
            update(ArtistProfile)
            .where(ArtistProfile.user_id == user_id)
            .values(
                revenue_merch=ArtistProfile.revenue_merch + merch,
                revenue_events=ArtistProfile.revenue_events + events,
                revenue_subscriptions=ArtistProfile.revenue_subscriptions + subscriptions,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def add_follower(
        session: AsyncSession,
        *,
        artist_id: UUID,
        follower_id: UUID,
        updated_at: datetime,
    ) -> int:
        follower_key = str(follower_id)
        stmt = (
            update(ArtistProfile)
            .where(
                ArtistProfile.user_id == artist_id,
                ~ArtistProfile.followers.contains([follower_key]),
            )
            .values(
                followers=ArtistProfile.followers.op("||")(func.jsonb_build_array(follower_key)),
                updated_at=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def remove_follower(
        session: AsyncSession,
        *,
        artist_id: UUID,
        follower_id: UUID,
        updated_at: datetime,
    ) -> int:
        stmt = (
            update(ArtistProfile)
            .where(ArtistProfile.user_id == artist_id)
            .values(
                followers=ArtistProfile.followers.op("-")(literal(str(follower_id), Text)),
                updated_at=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
