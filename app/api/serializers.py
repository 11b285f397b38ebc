from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.core.constants import UNKNOWN_ARTIST_NAME
from app.db.models import ArtistProfile, Blog, Event, Merch, Order, OrderItem, Song, Subscription, User

MONEY_QUANTUM = Decimal("0.01")


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _money(value: Decimal | float | int | None) -> str:
    if value is None:
        return "0.00"
    return str(Decimal(str(value)).quantize(MONEY_QUANTUM))


def _artist_ref(artist_id: Any, artist_name: str | None) -> dict[str, str]:
    return {"artistId": str(artist_id), "artistName": artist_name or UNKNOWN_ARTIST_NAME}


def user_public(user: User) -> dict[str, Any]:
    return {
        "_id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "avatarUrl": user.avatar_url,
    }


def user_account(user: User) -> dict[str, Any]:
    """Owner view of the account; never carries the password hash."""
    payload = user_public(user)
    payload.update(
        {
            "favorites": user.favorites or {"artists": [], "songs": [], "events": []},
            "playlists": list(user.playlists or []),
            "following": list(user.following or []),
            "adPreference": user.ad_preference or {},
            "planType": user.plan_type,
            "planRenewsAt": _iso(user.plan_renews_at),
            "createdAt": _iso(user.created_at),
            "lastLoginAt": _iso(user.last_login_at),
        }
    )
    return payload


def artist_profile(profile: ArtistProfile | None, *, include_revenue: bool = False) -> dict[str, Any]:
    if profile is None:
        return {
            "bio": "",
            "socialLinks": {},
            "followers": 0,
            "totalPlays": 0,
            "totalLikes": 0,
            "verified": False,
            "featured": False,
        }
    payload: dict[str, Any] = {
        "bio": profile.bio,
        "socialLinks": profile.social_links or {},
        "followers": len(profile.followers or []),
        "totalPlays": profile.total_plays,
        "totalLikes": profile.total_likes,
        "trendingScore": profile.trending_score,
        "verified": profile.verified,
        "featured": profile.featured,
    }
    if include_revenue:
        payload["revenue"] = {
            "subscriptions": _money(profile.revenue_subscriptions),
            "merch": _money(profile.revenue_merch),
            "events": _money(profile.revenue_events),
            "ads": _money(profile.revenue_ads),
        }
    return payload


def artist_card(user: User, profile: ArtistProfile | None) -> dict[str, Any]:
    payload = user_public(user)
    payload.pop("email")
    payload["artistProfile"] = artist_profile(profile)
    return payload


def song_view(song: Song, artist_name: str | None = None) -> dict[str, Any]:
    return {
        "_id": str(song.id),
        **_artist_ref(song.artist_id, artist_name),
        "title": song.title,
        "genre": song.genre,
        "fileUrl": song.file_url,
        "artworkUrl": song.artwork_url,
        "durationSec": song.duration_sec,
        "plays": song.plays,
        "uniqueListeners": song.unique_listeners,
        "likes": song.likes,
        "shares": song.shares,
        "visibility": song.visibility,
        "adEnabled": song.ad_enabled,
        "createdAt": _iso(song.created_at),
    }


def merch_view(item: Merch, artist_name: str | None = None) -> dict[str, Any]:
    return {
        "_id": str(item.id),
        **_artist_ref(item.artist_id, artist_name),
        "name": item.name,
        "description": item.description,
        "price": _money(item.price),
        "stock": item.stock,
        "images": list(item.images or []),
        "category": item.category,
        "ordersCount": item.orders_count,
        "createdAt": _iso(item.created_at),
        "updatedAt": _iso(item.updated_at),
    }


def event_view(event: Event, artist_name: str | None = None) -> dict[str, Any]:
    return {
        "_id": str(event.id),
        **_artist_ref(event.artist_id, artist_name),
        "title": event.title,
        "description": event.description,
        "date": _iso(event.date),
        "location": event.location,
        "onlineUrl": event.online_url,
        "ticketPrice": _money(event.ticket_price),
        "capacity": event.capacity,
        "imageUrl": event.image_url,
        "attendeesCount": len(event.attendees or []),
        "createdAt": _iso(event.created_at),
    }


def blog_view(blog: Blog, artist_name: str | None = None) -> dict[str, Any]:
    return {
        "_id": str(blog.id),
        **_artist_ref(blog.artist_id, artist_name),
        "title": blog.title,
        "content": blog.content,
        "visibility": blog.visibility,
        "images": list(blog.images or []),
        "tags": list(blog.tags or []),
        "createdAt": _iso(blog.created_at),
        "updatedAt": _iso(blog.updated_at),
    }


def subscription_view(subscription: Subscription) -> dict[str, Any]:
    return {
        "_id": str(subscription.id),
        "fan": str(subscription.fan_id),
        "artist": str(subscription.artist_id),
        "tier": subscription.tier,
        "amount": _money(subscription.amount),
        "currency": subscription.currency,
        "startDate": _iso(subscription.start_date),
        "endDate": _iso(subscription.end_date),
        "active": subscription.active,
    }


def order_item_view(item: OrderItem) -> dict[str, Any]:
    is_merch = item.merch_id is not None
    return {
        "type": "merch" if is_merch else "event",
        "id": str(item.merch_id if is_merch else item.event_id),
        "name": item.name,
        "qty": item.qty,
        "unitPrice": _money(item.unit_price),
    }


def order_view(order: Order, items: Sequence[OrderItem] = ()) -> dict[str, Any]:
    return {
        "_id": str(order.id),
        "user": str(order.user_id),
        "type": order.type,
        "items": [order_item_view(item) for item in items],
        "subtotal": _money(order.subtotal_amount),
        "discount": _money(order.discount_amount),
        "tax": _money(order.tax_amount),
        "totalAmount": _money(order.total_amount),
        "promoCode": order.promo_code,
        "currency": order.currency,
        "status": order.status,
        "razorpayOrderId": order.razorpay_order_id,
        "razorpayPaymentId": order.razorpay_payment_id,
        "shippingAddress": order.shipping_address,
        "qrTicketUrl": order.qr_ticket_url,
        "invoiceUrl": order.invoice_url,
        "createdAt": _iso(order.created_at),
        "paidAt": _iso(order.paid_at),
    }
