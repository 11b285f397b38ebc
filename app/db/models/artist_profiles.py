from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class ArtistProfile(Base):
    __tablename__ = "artist_profiles"
    __table_args__ = (
        CheckConstraint("total_plays >= 0", name="ck_artist_profiles_total_plays_non_negative"),
        CheckConstraint("total_likes >= 0", name="ck_artist_profiles_total_likes_non_negative"),
        Index("idx_artist_profiles_featured", "featured"),
        Index("idx_artist_profiles_verified", "verified"),
    )

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    bio: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    social_links: Mapped[dict[str, str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )
    followers: Mapped[list[str]] = mapped_column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    total_plays: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_likes: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    revenue_subscriptions: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default=text("0")
    )
    revenue_merch: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default=text("0"))
    revenue_events: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default=text("0"))
    revenue_ads: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default=text("0"))
    trending_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
