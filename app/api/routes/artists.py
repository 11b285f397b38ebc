from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, optional_auth_user, parse_resource_id, require_role
from app.api.schemas import ArtistProfileUpdateRequest
from app.api.serializers import (
    artist_card,
    artist_profile,
    blog_view,
    event_view,
    merch_view,
    song_view,
)
from app.core.constants import ROLE_ARTIST
from app.db.repo.blogs_repo import BlogsRepo
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.analytics import AnalyticsService

router = APIRouter(tags=["artists"])

TOP_SONGS_LIMIT = 5


@router.get("/api/artists/featured")
async def featured_artists(limit: int = Query(default=6, ge=1, le=50)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        rows = await UsersRepo.list_featured_artists(session, limit=limit)
    return [artist_card(user, profile) for user, profile in rows]


@router.get("/api/artists")
async def list_artists(limit: int = Query(default=20, ge=1, le=100)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        rows = await UsersRepo.list_artists(session, limit=limit)
        cards = []
        for user, profile in rows:
            songs = await SongsRepo.list_by_artist(session, user.id)
            card = artist_card(user, profile)
            card["songsCount"] = len(songs)
            card["totalPlays"] = sum(song.plays for song in songs)
            cards.append(card)
    return cards


@router.get("/api/artists/search")
async def search_artists(
    q: str = Query(default=""),
    limit: int = Query(default=20, ge=1, le=100),
    viewer: AuthUser | None = Depends(optional_auth_user),
) -> list[dict[str, Any]]:
    query = q.strip()
    if not query:
        raise api_error(400, "E_VALIDATION", "Search query required")

    async with SessionLocal.begin() as session:
        rows = await UsersRepo.search_artists(session, query=query, limit=limit)
        await AnalyticsService.track_search(
            session,
            user_id=viewer.id if viewer is not None else None,
            query=query,
            results_count=len(rows),
            happened_at=datetime.now(timezone.utc),
        )
    return [artist_card(user, profile) for user, profile in rows]


@router.get("/api/artists/profile")
async def my_artist_profile(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, user.id)
    if artist is None:
        raise api_error(404, "E_NOT_FOUND", "Artist profile not found")
    account, profile = artist
    card = artist_card(account, profile)
    card["email"] = account.email
    card["artistProfile"] = artist_profile(profile, include_revenue=True)
    return card


@router.patch("/api/artists/profile")
async def update_artist_profile(
    payload: ArtistProfileUpdateRequest,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, user.id)
        if artist is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")
        _, profile = artist
        if values:
            profile = await UsersRepo.update_artist_profile(
                session,
                profile,
                values,
                updated_at=datetime.now(timezone.utc),
            )
        return artist_profile(profile, include_revenue=True)


@router.get("/api/artists/songs")
async def my_songs(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        songs = await SongsRepo.list_by_artist(session, user.id)
    return [song_view(song, user.name) for song in songs]


@router.get("/api/artists/analytics")
async def my_analytics(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, Any]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, user.id)
        if artist is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")
        _, profile = artist
        songs = await SongsRepo.list_by_artist(session, user.id)
        summary = await AnalyticsService.artist_summary(session, artist_id=user.id, now_utc=now_utc)

    followers_count = len(profile.followers or [])
    new_subscribers = int(summary["newSubscribers"])
    conversion_rate = round(new_subscribers / followers_count * 100, 1) if followers_count else 0.0

    revenue_subscriptions = Decimal(str(profile.revenue_subscriptions))
    revenue_merch = Decimal(str(profile.revenue_merch))
    revenue_events = Decimal(str(profile.revenue_events))
    revenue_ads = Decimal(str(profile.revenue_ads))
    top_songs = sorted(songs, key=lambda song: song.plays, reverse=True)[:TOP_SONGS_LIMIT]

    return {
        "monthlyRevenue": str(revenue_subscriptions + revenue_merch + revenue_events + revenue_ads),
        "subscriptionRevenue": str(revenue_subscriptions),
        "merchRevenue": str(revenue_merch),
        "eventRevenue": str(revenue_events),
        "totalPlays": sum(song.plays for song in songs),
        "uniqueListeners": sum(song.unique_listeners for song in songs),
        "totalLikes": sum(song.likes for song in songs),
        "newFollowers": int(summary["totalFollows"]),
        "newSubscribers": new_subscribers,
        "conversionRate": conversion_rate,
        "recentActivity": summary,
        "topSongs": [song_view(song, user.name) for song in top_songs],
    }


@router.get("/api/artists/{artist_id}")
async def get_artist(artist_id: str) -> dict[str, Any]:
    target_id = parse_resource_id(artist_id, not_found_message="Artist not found")
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, target_id)
        if artist is None:
            raise api_error(404, "E_NOT_FOUND", "Artist not found")
        account, profile = artist
        songs = await SongsRepo.list_by_artist(session, target_id)
        events = await EventsRepo.list_by_artist(session, target_id)
        merch = await MerchRepo.list_by_artist(session, target_id)
        blogs = await BlogsRepo.list_by_artist(session, target_id)

    payload = artist_card(account, profile)
    payload.update(
        {
            "songs": [song_view(song, account.name) for song in songs],
            "events": [event_view(event, account.name) for event in events],
            "merch": [merch_view(item, account.name) for item in merch],
            "blogs": [blog_view(blog, account.name) for blog in blogs],
        }
    )
    return payload
