from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Query, Request

from app.api.errors import api_error
from app.api.routes.auth_guard import (
    AuthUser,
    authenticate_token,
    optional_auth_user,
    parse_resource_id,
    require_role,
)
from app.api.routes.content_request import (
    content_http_error,
    form_files,
    media_http_error,
    new_public_id,
    read_json_or_form,
    validate_payload,
)
from app.api.schemas import InteractionRequest, SongCreatePayload, SongUpdatePayload
from app.api.serializers import song_view
from app.content.errors import ContentError
from app.content.ownership import ensure_artist_owns
from app.core.analytics_events import CONTEXT_PROFILE
from app.core.constants import ROLE_ARTIST
from app.db.models import Song
from app.db.repo.songs_repo import SONG_SORT_ORDERS, SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.analytics import AnalyticsService
from app.services.media_uploads import MediaUploadError, upload_audio, upload_image

router = APIRouter(tags=["songs"])
logger = structlog.get_logger(__name__)

SONG_RESOURCE = "Song"


@router.get("/api/songs/trending")
async def trending_songs(limit: int = Query(default=10, ge=1, le=100)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        rows = await SongsRepo.list_trending(session, limit=limit)
    return [song_view(song, name) for song, name in rows]


@router.get("/api/songs/recommended")
async def recommended_songs(
    limit: int = Query(default=10, ge=1, le=100),
    user: AuthUser = Depends(authenticate_token),
) -> list[dict[str, Any]]:
    # Recommendations are the trending list for now.
    async with SessionLocal.begin() as session:
        rows = await SongsRepo.list_trending(session, limit=limit)
    return [song_view(song, name) for song, name in rows]


@router.get("/api/songs/search")
async def search_songs(
    q: str = Query(default=""),
    viewer: AuthUser | None = Depends(optional_auth_user),
) -> list[dict[str, Any]]:
    query = q.strip()
    if not query:
        raise api_error(400, "E_VALIDATION", "Search query required")

    async with SessionLocal.begin() as session:
        songs = await SongsRepo.search(session, query=query)
        artists = await UsersRepo.list_by_ids(session, [song.artist_id for song in songs])
        await AnalyticsService.track_search(
            session,
            user_id=viewer.id if viewer is not None else None,
            query=query,
            results_count=len(songs),
            happened_at=datetime.now(timezone.utc),
        )

    names = {artist.id: artist.name for artist in artists}
    return [song_view(song, names.get(song.artist_id)) for song in songs]


@router.get("/api/songs")
async def list_songs(
    genre: str | None = Query(default=None),
    sort: str = Query(default="latest"),
    limit: int = Query(default=20, ge=1, le=100),
) -> list[dict[str, Any]]:
    if sort not in SONG_SORT_ORDERS:
        raise api_error(400, "E_VALIDATION", f"Unsupported sort '{sort}'")
    async with SessionLocal.begin() as session:
        rows = await SongsRepo.list_public(session, genre=genre, sort=sort, limit=limit)
    return [song_view(song, name) for song, name in rows]


@router.get("/api/songs/{song_id}")
async def get_song(song_id: str) -> dict[str, Any]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    async with SessionLocal.begin() as session:
        row = await SongsRepo.get_with_artist_name(session, target_id)
    if row is None:
        raise api_error(404, "E_NOT_FOUND", "Song not found")
    return song_view(*row)


@router.post("/api/songs")
async def upload_song(
    request: Request,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    data, form = await read_json_or_form(request)
    payload = validate_payload(SongCreatePayload, data)
    audio_files = form_files(form, "audio", max_count=1)
    artwork_files = form_files(form, "artwork", max_count=1)
    if not audio_files or not artwork_files:
        raise api_error(400, "E_VALIDATION", "Audio file and artwork required")

    async with SessionLocal.begin() as session:
        if await UsersRepo.get_artist(session, user.id) is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")

    try:
        audio = await upload_audio(await audio_files[0].read(), public_id=new_public_id("song"))
        artwork = await upload_image(await artwork_files[0].read(), public_id=new_public_id("artwork"))
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        song = await SongsRepo.create(
            session,
            song=Song(
                artist_id=user.id,
                title=payload.title,
                genre=payload.genre,
                visibility=payload.visibility,
                ad_enabled=payload.ad_enabled,
                file_url=audio.secure_url,
                artwork_url=artwork.secure_url,
                duration_sec=round(audio.duration_sec or 0),
                plays=0,
                unique_listeners=0,
                likes=0,
                shares=0,
                reviews=[],
            ),
        )
        await AnalyticsService.track_view(
            session,
            user_id=user.id,
            page="song_upload",
            happened_at=now_utc,
            artist_id=user.id,
            song_id=song.id,
            context=CONTEXT_PROFILE,
        )
        response = song_view(song, user.name)

    logger.info("song_uploaded", song_id=response["_id"], artist_id=str(user.id))
    return response


@router.patch("/api/songs/{song_id}")
async def update_song(
    song_id: str,
    request: Request,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await SongsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
    except ContentError as exc:
        raise content_http_error(exc, resource=SONG_RESOURCE) from exc

    data, form = await read_json_or_form(request)
    payload = validate_payload(SongUpdatePayload, data)
    values: dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)

    audio_files = form_files(form, "audio", max_count=1)
    artwork_files = form_files(form, "artwork", max_count=1)
    try:
        if audio_files:
            audio = await upload_audio(await audio_files[0].read(), public_id=new_public_id("song"))
            values.update(file_url=audio.secure_url, duration_sec=round(audio.duration_sec or 0))
        if artwork_files:
            artwork = await upload_image(await artwork_files[0].read(), public_id=new_public_id("artwork"))
            values["artwork_url"] = artwork.secure_url
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    try:
        async with SessionLocal.begin() as session:
            song = ensure_artist_owns(
                await SongsRepo.get_by_id(session, target_id),
                caller_id=user.id,
                caller_role=user.role,
            )
            if values:
                song = await SongsRepo.update_fields(session, song, values)
            return song_view(song, user.name)
    except ContentError as exc:
        raise content_http_error(exc, resource=SONG_RESOURCE) from exc


@router.delete("/api/songs/{song_id}")
async def delete_song(song_id: str, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, str]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await SongsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
            await SongsRepo.delete(session, target_id)
    except ContentError as exc:
        raise content_http_error(exc, resource=SONG_RESOURCE) from exc

    logger.info("song_deleted", song_id=str(target_id), artist_id=str(user.id))
    return {"message": "Song deleted successfully"}


@router.post("/api/songs/{song_id}/play")
async def play_song(
    song_id: str,
    payload: InteractionRequest | None = Body(default=None),
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, str]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    context = payload.context if payload is not None else InteractionRequest().context
    async with SessionLocal.begin() as session:
        song = await SongsRepo.get_by_id(session, target_id)
        if song is None:
            raise api_error(404, "E_NOT_FOUND", "Song not found")
        await AnalyticsService.track_play(
            session,
            user_id=user.id,
            song_id=song.id,
            artist_id=song.artist_id,
            happened_at=datetime.now(timezone.utc),
            context=context,
        )
    return {"message": "Play logged"}


@router.post("/api/songs/{song_id}/like")
async def like_song(
    song_id: str,
    payload: InteractionRequest | None = Body(default=None),
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, bool]:
    target_id = parse_resource_id(song_id, not_found_message="Song not found")
    context = payload.context if payload is not None else InteractionRequest().context
    async with SessionLocal.begin() as session:
        song = await SongsRepo.get_by_id(session, target_id)
        if song is None:
            raise api_error(404, "E_NOT_FOUND", "Song not found")
        account = await UsersRepo.get_by_id_for_update(session, user.id)
        if account is None:
            raise api_error(404, "E_NOT_FOUND", "User not found")

        favorites = dict(account.favorites or {})
        liked_songs = list(favorites.get("songs", []))
        song_key = str(song.id)
        liked = song_key not in liked_songs
        favorites["songs"] = [*liked_songs, song_key] if liked else [item for item in liked_songs if item != song_key]

        await UsersRepo.update_fields(session, account, {"favorites": favorites})
        await AnalyticsService.track_like(
            session,
            user_id=user.id,
            song_id=song.id,
            artist_id=song.artist_id,
            liked=liked,
            happened_at=datetime.now(timezone.utc),
            context=context,
        )
    return {"liked": liked}
