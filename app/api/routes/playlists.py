from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token
from app.api.schemas import PlaylistAddSongRequest, PlaylistCreateRequest
from app.api.serializers import song_view
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal

router = APIRouter(tags=["playlists"])


def _song_uuids(raw_ids: list[str]) -> list[UUID]:
    song_ids: list[UUID] = []
    for raw_id in raw_ids:
        try:
            song_ids.append(UUID(str(raw_id)))
        except ValueError:
            continue
    return song_ids


@router.get("/api/playlists/mine")
async def my_playlists(user: AuthUser = Depends(authenticate_token)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        account = await UsersRepo.get_by_id(session, user.id)
        if account is None:
            raise api_error(404, "E_NOT_FOUND", "User not found")

        playlists = list(account.playlists or [])
        all_song_ids = [song_id for playlist in playlists for song_id in _song_uuids(playlist.get("songs", []))]
        rows = await SongsRepo.list_by_ids_with_artist_names(session, all_song_ids)

    songs_by_id = {song.id: song_view(song, name) for song, name in rows}
    # Deleted songs silently drop out of the populated view.
    return [
        {
            **playlist,
            "songs": [songs_by_id[song_id] for song_id in _song_uuids(playlist.get("songs", [])) if song_id in songs_by_id],
        }
        for playlist in playlists
    ]


@router.post("/api/playlists")
async def create_playlist(
    payload: PlaylistCreateRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, Any]:
    new_playlist = {
        "name": payload.name,
        "songs": list(dict.fromkeys(payload.songs)),
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    async with SessionLocal.begin() as session:
        account = await UsersRepo.get_by_id_for_update(session, user.id)
        if account is None:
            raise api_error(404, "E_NOT_FOUND", "User not found")
        await UsersRepo.update_fields(session, account, {"playlists": [*(account.playlists or []), new_playlist]})
    return new_playlist


@router.post("/api/playlists/add-song")
async def add_song_to_playlist(
    payload: PlaylistAddSongRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, str]:
    async with SessionLocal.begin() as session:
        account = await UsersRepo.get_by_id_for_update(session, user.id)
        if account is None:
            raise api_error(404, "E_NOT_FOUND", "User not found")

        playlists = list(account.playlists or [])
        if not any(playlist.get("name") == payload.playlist_name for playlist in playlists):
            raise api_error(404, "E_NOT_FOUND", "Playlist not found")

        updated = []
        for playlist in playlists:
            songs = list(playlist.get("songs", []))
            if playlist.get("name") == payload.playlist_name and payload.song_id not in songs:
                playlist = {**playlist, "songs": [*songs, payload.song_id]}
            updated.append(playlist)
        await UsersRepo.update_fields(session, account, {"playlists": updated})

    return {"message": "Song added to playlist"}
