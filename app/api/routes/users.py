from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token, parse_resource_id
from app.api.routes.content_request import media_http_error
from app.api.schemas import UserUpdateRequest
from app.api.serializers import artist_card, artist_profile, event_view, song_view, user_account
from app.core.constants import ROLE_ARTIST
from app.db.models import User
from app.db.repo.analytics_repo import AnalyticsRepo
from app.db.repo.events_repo import EventsRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.analytics import AnalyticsService
from app.services.media_uploads import AVATARS_FOLDER, MAX_AVATAR_BYTES, MediaUploadError, upload_image

router = APIRouter(tags=["users"])
logger = structlog.get_logger(__name__)

RECENT_PLAYS_LIMIT = 10

DEFAULT_NOTIFICATION_SETTINGS = {"email": True, "newMusic": True, "events": True, "marketing": False}
DEFAULT_PRIVACY_SETTINGS = {
    "profileVisibility": "public",
    "activityStatus": True,
    "listeningHistory": True,
    "personalizedAds": False,
}


def _uuid_list(raw_ids: list[str]) -> list[UUID]:
    parsed: list[UUID] = []
    for raw_id in raw_ids:
        try:
            parsed.append(UUID(str(raw_id)))
        except ValueError:
            continue
    return parsed


def _favorites_of(user: User) -> dict[str, list[str]]:
    favorites = user.favorites or {}
    return {
        "artists": list(favorites.get("artists", [])),
        "songs": list(favorites.get("songs", [])),
        "events": list(favorites.get("events", [])),
    }


async def _load_user(session: AsyncSession, user_id: UUID, *, for_update: bool = False) -> User:
    if for_update:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
    else:
        user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise api_error(404, "E_NOT_FOUND", "User not found")
    return user


@router.get("/api/users/me")
async def get_me(user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id)
        payload = user_account(account)
        if account.role == ROLE_ARTIST:
            artist = await UsersRepo.get_artist(session, account.id)
            if artist is not None:
                payload["artistProfile"] = artist_profile(artist[1], include_revenue=True)
    return payload


@router.patch("/api/users/me")
async def update_me(
    payload: UserUpdateRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, Any]:
    # Only profile presentation fields are writable here; role, plan and credentials are not.
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id, for_update=True)
        if values:
            account = await UsersRepo.update_fields(session, account, values)
        return user_account(account)


@router.get("/api/users/me/settings")
async def get_settings_view(user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id)
        profile = None
        if account.role == ROLE_ARTIST:
            profile = await UsersRepo.get_artist_profile(session, account.id)

    social_links = (profile.social_links if profile is not None else None) or {}
    ad_preference = account.ad_preference or {}
    return {
        "user": {
            "id": str(account.id),
            "name": account.name,
            "email": account.email,
            "role": account.role,
            "avatarUrl": account.avatar_url,
            "bio": profile.bio if profile is not None else "",
            "website": social_links.get("website", ""),
            "instagram": social_links.get("instagram", ""),
            "youtube": social_links.get("youtube", ""),
            "x": social_links.get("x", ""),
        },
        "notifications": dict(DEFAULT_NOTIFICATION_SETTINGS),
        "privacy": {
            **DEFAULT_PRIVACY_SETTINGS,
            "personalizedAds": bool(ad_preference.get("personalized", False)),
        },
    }


@router.get("/api/users/me/recent-plays")
async def recent_plays(user: AuthUser = Depends(authenticate_token)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        song_ids = await AnalyticsRepo.list_recent_played_song_ids(
            session,
            user_id=user.id,
            limit=RECENT_PLAYS_LIMIT,
        )
        rows = await SongsRepo.list_by_ids_with_artist_names(session, song_ids)

    by_id = {song.id: (song, name) for song, name in rows}
    return [song_view(*by_id[song_id]) for song_id in song_ids if song_id in by_id]


@router.get("/api/users/me/analytics")
async def my_listening_summary(user: AuthUser = Depends(authenticate_token)) -> dict[str, int]:
    async with SessionLocal.begin() as session:
        return await AnalyticsService.user_summary(
            session,
            user_id=user.id,
            now_utc=datetime.now(timezone.utc),
        )


@router.get("/api/users/me/following-content")
async def following_content(user: AuthUser = Depends(authenticate_token)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id)
        artists = []
        for artist_id in _uuid_list(account.following or []):
            artist = await UsersRepo.get_artist(session, artist_id)
            if artist is not None:
                artists.append(artist_card(*artist))
    return artists


@router.post("/api/users/follow/{artist_id}")
async def toggle_follow(artist_id: str, user: AuthUser = Depends(authenticate_token)) -> dict[str, bool]:
    target_id = parse_resource_id(artist_id, not_found_message="Artist not found")
    if target_id == user.id:
        raise api_error(400, "E_VALIDATION", "You cannot follow yourself")

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        artist = await UsersRepo.get_artist(session, target_id)
        if artist is None:
            raise api_error(404, "E_NOT_FOUND", "Artist not found")
        account = await _load_user(session, user.id, for_update=True)

        target_key = str(target_id)
        currently_following = target_key in (account.following or [])
        if currently_following:
            following = [item for item in account.following if item != target_key]
            await UsersRepo.remove_follower(session, artist_id=target_id, follower_id=user.id, updated_at=now_utc)
        else:
            following = [*(account.following or []), target_key]
            await UsersRepo.add_follower(session, artist_id=target_id, follower_id=user.id, updated_at=now_utc)

        await UsersRepo.update_fields(session, account, {"following": following})
        await AnalyticsService.track_follow(
            session,
            user_id=user.id,
            artist_id=target_id,
            following=not currently_following,
            happened_at=now_utc,
        )

    return {"following": not currently_following}


@router.get("/api/users/me/favorites")
async def get_favorites(user: AuthUser = Depends(authenticate_token)) -> dict[str, list[dict[str, Any]]]:
    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id)
        favorites = _favorites_of(account)

        song_rows = await SongsRepo.list_by_ids_with_artist_names(session, _uuid_list(favorites["songs"]))
        events = await EventsRepo.list_by_ids(session, _uuid_list(favorites["events"]))
        artists = []
        for artist_id in _uuid_list(favorites["artists"]):
            artist = await UsersRepo.get_artist(session, artist_id)
            if artist is not None:
                artists.append(artist_card(*artist))

    return {
        "artists": artists,
        "songs": [song_view(song, name) for song, name in song_rows],
        "events": [event_view(event) for event in events],
    }


@router.post("/api/users/me/favorites/songs/{song_id}")
async def toggle_favorite_song(song_id: str, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    song_key = str(target_id)

    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id, for_update=True)
        favorites = _favorites_of(account)
        favorited = song_key not in favorites["songs"]
        if favorited:
            if await SongsRepo.get_by_id(session, target_id) is None:
                raise api_error(404, "E_NOT_FOUND", "Song not found")
            favorites["songs"].append(song_key)
        else:
            favorites["songs"].remove(song_key)
        await UsersRepo.update_fields(session, account, {"favorites": favorites})

    return {"favorited": favorited, "favorites": favorites}


@router.post("/api/users/me/avatar")
async def upload_avatar(
    avatar: UploadFile | None = File(default=None),
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, str]:
    if avatar is None or not avatar.filename:
        raise api_error(400, "E_VALIDATION", "Avatar file required")
    if not (avatar.content_type or "").startswith("image/"):
        raise api_error(400, "E_VALIDATION", "Only image files are allowed")

    content = await avatar.read()
    if len(content) > MAX_AVATAR_BYTES:
        raise api_error(400, "E_VALIDATION", "File size must be less than 5MB")

    try:
        uploaded = await upload_image(content, public_id=f"avatar_{user.id}", folder=AVATARS_FOLDER)
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    async with SessionLocal.begin() as session:
        account = await _load_user(session, user.id, for_update=True)
        await UsersRepo.update_fields(session, account, {"avatar_url": uploaded.secure_url})

    logger.info("user_avatar_updated", user_id=str(user.id))
    return {"message": "Avatar uploaded successfully", "avatarUrl": uploaded.secure_url}
