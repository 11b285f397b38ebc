from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Song(Base):
    __tablename__ = "songs"
    __table_args__ = (
        CheckConstraint("visibility IN ('PUBLIC','SUBSCRIBER_ONLY')", name="ck_songs_visibility"),
        CheckConstraint("plays >= 0", name="ck_songs_plays_non_negative"),
        CheckConstraint("likes >= 0", name="ck_songs_likes_non_negative"),
        Index("idx_songs_artist", "artist_id"),
        Index("idx_songs_plays", "plays"),
        Index("idx_songs_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    artist_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    genre: Mapped[str] = mapped_column(String(64), nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    artwork_url: Mapped[str] = mapped_column(Text, nullable=False)
    duration_sec: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    plays: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    unique_listeners: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    likes: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    shares: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    reviews: Mapped[list[dict[str, object]]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    visibility: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'PUBLIC'"))
    ad_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
