from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import playlists as playlists_routes
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from tests.api.helpers import DummySessionLocal, auth_headers

FAN_ID = uuid4()


def _song(title: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        artist_id=uuid4(),
        title=title,
        genre="pop",
        file_url=f"https://media.example/{title}.mp3",
        artwork_url=None,
        duration_sec=180,
        plays=0,
        unique_listeners=0,
        likes=0,
        shares=0,
        visibility="PUBLIC",
        ad_enabled=False,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def playlist_env(monkeypatch) -> SimpleNamespace:
    account = SimpleNamespace(id=FAN_ID, playlists=[])
    env = SimpleNamespace(account=account, songs={})

    async def _get_by_id(session, user_id):
        return env.account if user_id == FAN_ID else None

    async def _update_fields(session, user, values):
        for key, value in values.items():
            setattr(user, key, value)
        return user

    async def _list_with_names(session, song_ids):
        return [(env.songs[song_id], "Kavi") for song_id in song_ids if song_id in env.songs]

    monkeypatch.setattr(playlists_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(UsersRepo, "get_by_id", _get_by_id)
    monkeypatch.setattr(UsersRepo, "get_by_id_for_update", _get_by_id)
    monkeypatch.setattr(UsersRepo, "update_fields", _update_fields)
    monkeypatch.setattr(SongsRepo, "list_by_ids_with_artist_names", _list_with_names)
    return env


def _fan_headers() -> dict[str, str]:
    return auth_headers(user_id=FAN_ID)


def test_create_deduplicates_songs_in_order(playlist_env) -> None:
    first, second = str(uuid4()), str(uuid4())

    response = TestClient(app).post(
        "/api/playlists",
        json={"name": "Road trip", "songs": [first, second, first]},
        headers=_fan_headers(),
    )

    assert response.status_code == 200
    assert response.json()["songs"] == [first, second]
    assert playlist_env.account.playlists[0]["name"] == "Road trip"


def test_create_requires_login(playlist_env) -> None:
    response = TestClient(app).post("/api/playlists", json={"name": "Road trip"})

    assert response.status_code == 401
    assert playlist_env.account.playlists == []


def test_add_song_does_not_duplicate(playlist_env) -> None:
    song_id = str(uuid4())
    playlist_env.account.playlists = [{"name": "Focus", "songs": [song_id]}, {"name": "Gym", "songs": []}]
    client = TestClient(app)

    repeated = client.post(
        "/api/playlists/add-song",
        json={"playlistName": "Focus", "songId": song_id},
        headers=_fan_headers(),
    )
    added = client.post(
        "/api/playlists/add-song",
        json={"playlistName": "Gym", "songId": song_id},
        headers=_fan_headers(),
    )

    assert repeated.status_code == 200
    assert repeated.json() == {"message": "Song added to playlist"}
    assert added.status_code == 200
    assert playlist_env.account.playlists == [
        {"name": "Focus", "songs": [song_id]},
        {"name": "Gym", "songs": [song_id]},
    ]


def test_add_song_to_unknown_playlist_returns_404(playlist_env) -> None:
    playlist_env.account.playlists = [{"name": "Focus", "songs": []}]

    response = TestClient(app).post(
        "/api/playlists/add-song",
        json={"playlistName": "Chill", "songId": str(uuid4())},
        headers=_fan_headers(),
    )

    assert response.status_code == 404
    assert response.json() == {"message": "Playlist not found", "code": "E_NOT_FOUND"}
    assert playlist_env.account.playlists == [{"name": "Focus", "songs": []}]


def test_mine_populates_songs_and_drops_deleted_ones(playlist_env) -> None:
    kept = _song("monsoon")
    playlist_env.songs[kept.id] = kept
    playlist_env.account.playlists = [
        {"name": "Focus", "songs": [str(kept.id), str(uuid4()), "not-a-uuid"], "createdAt": "2026-05-01T00:00:00+00:00"}
    ]

    response = TestClient(app).get("/api/playlists/mine", headers=_fan_headers())

    assert response.status_code == 200
    [playlist] = response.json()
    assert playlist["name"] == "Focus"
    assert playlist["createdAt"] == "2026-05-01T00:00:00+00:00"
    assert [song["title"] for song in playlist["songs"]] == ["monsoon"]
    assert playlist["songs"][0]["artistName"] == "Kavi"
