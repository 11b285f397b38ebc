from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.analytics_events import ANALYTICS_ACTIONS, ANALYTICS_CONTEXTS

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128

Role = Literal["fan", "artist"]
Visibility = Literal["PUBLIC", "SUBSCRIBER_ONLY"]
SubscriptionTier = Literal["BRONZE", "SILVER", "GOLD"]
CartItemType = Literal["merch", "event"]


class ApiModel(BaseModel):
    """Request bodies arrive camelCased from the web client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


# Auth


class SignupRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    role: Role = "fan"


class LoginRequest(ApiModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class ForgotPasswordRequest(ApiModel):
    email: str = Field(min_length=1, max_length=320)


class ResetPasswordRequest(ApiModel):
    email: str = Field(min_length=1, max_length=320)
    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


# Users, playlists, artists


class AdPreference(ApiModel):
    personalized: bool = True
    categories: list[str] = Field(default_factory=list)


class UserUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    avatar_url: str | None = Field(default=None, max_length=2048)
    ad_preference: AdPreference | None = None


class PlaylistCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    songs: list[str] = Field(default_factory=list)


class PlaylistAddSongRequest(ApiModel):
    playlist_name: str = Field(min_length=1, max_length=120)
    song_id: str = Field(min_length=1, max_length=64)


class SocialLinks(ApiModel):
    website: str | None = None
    instagram: str | None = None
    youtube: str | None = None
    x: str | None = None


class ArtistProfileUpdateRequest(ApiModel):
    bio: str | None = Field(default=None, max_length=4000)
    social_links: SocialLinks | None = None


class InteractionRequest(ApiModel):
    context: Literal["home", "profile", "discover", "player", "cart", "admin"] = "player"


# Artist content


class SongCreatePayload(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    genre: str = Field(min_length=1, max_length=64)
    visibility: Visibility = "PUBLIC"
    ad_enabled: bool = True


class SongUpdatePayload(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    genre: str | None = Field(default=None, min_length=1, max_length=64)
    visibility: Visibility | None = None
    ad_enabled: bool | None = None


class MerchCreatePayload(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=4000)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    category: str | None = Field(default=None, max_length=64)


class MerchUpdatePayload(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock: int | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, max_length=64)


class EventCreatePayload(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=4000)
    date: datetime
    location: str = Field(min_length=1, max_length=300)
    online_url: str | None = Field(default=None, max_length=2048)
    ticket_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    capacity: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=2048)


class EventUpdatePayload(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    date: datetime | None = None
    location: str | None = Field(default=None, min_length=1, max_length=300)
    online_url: str | None = Field(default=None, max_length=2048)
    ticket_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    capacity: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=2048)


def _parse_tags(value: Any) -> Any:
    """Multipart forms send tags as a JSON array string or a comma separated list."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            return json.loads(stripped)
        except ValueError:
            return value
    return [tag.strip() for tag in stripped.split(",") if tag.strip()]


class BlogCreatePayload(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    visibility: Visibility = "PUBLIC"
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_form(cls, value: Any) -> Any:
        return _parse_tags(value)


class BlogUpdatePayload(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    visibility: Visibility | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_form(cls, value: Any) -> Any:
        return _parse_tags(value)


# Commerce


class SubscriptionCreateRequest(ApiModel):
    artist_id: str = Field(min_length=1, max_length=64)
    plan: SubscriptionTier = "BRONZE"
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class ShippingAddress(ApiModel):
    name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None


class OrderCreateRequest(ApiModel):
    shipping_address: ShippingAddress | None = None


class PaymentVerifyRequest(ApiModel):
    order_id: str = Field(min_length=1, max_length=64)
    payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1, max_length=256)
    order_db_id: str = Field(min_length=1, max_length=64)


class CartAddRequest(ApiModel):
    type: CartItemType
    id: str = Field(min_length=1, max_length=64)
    quantity: int = Field(default=1, ge=1, le=99)


class CartUpdateRequest(ApiModel):
    item_id: str = Field(min_length=1, max_length=64)
    quantity: int = Field(le=99)


class CartRemoveRequest(ApiModel):
    item_id: str = Field(min_length=1, max_length=64)


class PromoCodeRequest(ApiModel):
    code: str = Field(min_length=1, max_length=32)


# Analytics and admin


class AnalyticsLogRequest(ApiModel):
    action: str = Field(min_length=1, max_length=32)
    context: str = Field(min_length=1, max_length=16)
    artist_id: str | None = None
    song_id: str | None = None
    merch_id: str | None = None
    event_id: str | None = None
    value: Decimal | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def is_known_action(self) -> bool:
        return self.action in ANALYTICS_ACTIONS

    def is_known_context(self) -> bool:
        return self.context in ANALYTICS_CONTEXTS


class VerifyArtistRequest(ApiModel):
    approved: bool
    reason: str | None = Field(default=None, max_length=1000)
