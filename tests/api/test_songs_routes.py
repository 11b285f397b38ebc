from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import songs as songs_routes
from app.db.models import Song
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from app.services.analytics import AnalyticsService
from tests.api.helpers import DummySessionLocal, auth_headers

OWNER_ID = uuid4()


def _song(**overrides) -> Song:
    values = dict(
        id=uuid4(),
        artist_id=OWNER_ID,
        title="Monsoon Lines",
        genre="indie",
        visibility="PUBLIC",
        ad_enabled=True,
        file_url="https://media.example/song.mp3",
        artwork_url="https://media.example/art.jpg",
        duration_sec=201,
        plays=0,
        unique_listeners=0,
        likes=0,
        shares=0,
        reviews=[],
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Song(**values)


@pytest.fixture
def song_catalogue(monkeypatch) -> SimpleNamespace:
    env = SimpleNamespace(songs={}, deleted=[], plays=[], likes=[], accounts={})

    async def _get_by_id(session, song_id):
        return env.songs.get(song_id)

    async def _delete(session, song_id):
        env.deleted.append(song_id)
        return 1

    async def _update_fields(session, song, values):
        for key, value in values.items():
            setattr(song, key, value)
        return song

    async def _get_account(session, user_id):
        return env.accounts.get(user_id)

    async def _update_account(session, user, values):
        for key, value in values.items():
            setattr(user, key, value)
        return user

    async def _track_play(session, **kwargs):
        env.plays.append(kwargs)

    async def _track_like(session, **kwargs):
        env.likes.append(kwargs)

    monkeypatch.setattr(songs_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(SongsRepo, "get_by_id", _get_by_id)
    monkeypatch.setattr(SongsRepo, "delete", _delete)
    monkeypatch.setattr(SongsRepo, "update_fields", _update_fields)
    monkeypatch.setattr(UsersRepo, "get_by_id_for_update", _get_account)
    monkeypatch.setattr(UsersRepo, "update_fields", _update_account)
    monkeypatch.setattr(AnalyticsService, "track_play", _track_play)
    monkeypatch.setattr(AnalyticsService, "track_like", _track_like)
    return env


def test_other_artist_cannot_update_song(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song

    client = TestClient(app)
    response = client.patch(
        f"/api/songs/{song.id}",
        headers=auth_headers(role="artist"),
        json={"title": "Stolen"},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "E_FORBIDDEN"
    assert song.title == "Monsoon Lines"


def test_other_artist_cannot_delete_song(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song

    client = TestClient(app)
    response = client.delete(f"/api/songs/{song.id}", headers=auth_headers(role="artist"))

    assert response.status_code == 403
    assert song_catalogue.deleted == []


def test_owner_updates_song_metadata(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song

    client = TestClient(app)
    response = client.patch(
        f"/api/songs/{song.id}",
        headers=auth_headers(role="artist", user_id=OWNER_ID, name="Kavya"),
        json={"title": "Monsoon Lines (Live)", "adEnabled": False},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Monsoon Lines (Live)"
    assert body["adEnabled"] is False
    assert body["genre"] == "indie"


def test_owner_deletes_song(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song

    client = TestClient(app)
    response = client.delete(f"/api/songs/{song.id}", headers=auth_headers(role="artist", user_id=OWNER_ID))

    assert response.status_code == 200
    assert response.json() == {"message": "Song deleted successfully"}
    assert song_catalogue.deleted == [song.id]


def test_deleting_missing_song_returns_404(song_catalogue) -> None:
    client = TestClient(app)
    response = client.delete(f"/api/songs/{uuid4()}", headers=auth_headers(role="artist", user_id=OWNER_ID))

    assert response.status_code == 404
    assert response.json()["message"] == "Song not found"


def test_play_on_missing_song_returns_404(song_catalogue) -> None:
    client = TestClient(app)
    response = client.post(f"/api/songs/{uuid4()}/play", headers=auth_headers())

    assert response.status_code == 404
    assert song_catalogue.plays == []


def test_play_is_logged_with_context(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song
    listener_id = uuid4()

    client = TestClient(app)
    response = client.post(
        f"/api/songs/{song.id}/play",
        headers=auth_headers(user_id=listener_id),
        json={"context": "discover"},
    )

    assert response.status_code == 200
    assert song_catalogue.plays[0]["user_id"] == listener_id
    assert song_catalogue.plays[0]["artist_id"] == OWNER_ID
    assert song_catalogue.plays[0]["context"] == "discover"


def test_like_toggles_favorite(song_catalogue) -> None:
    song = _song()
    song_catalogue.songs[song.id] = song
    fan_id = uuid4()
    account = SimpleNamespace(id=fan_id, favorites={"songs": [], "artists": []})
    song_catalogue.accounts[fan_id] = account

    client = TestClient(app)
    first = client.post(f"/api/songs/{song.id}/like", headers=auth_headers(user_id=fan_id))
    second = client.post(f"/api/songs/{song.id}/like", headers=auth_headers(user_id=fan_id))

    assert first.json() == {"liked": True}
    assert second.json() == {"liked": False}
    assert account.favorites["songs"] == []
    assert [call["liked"] for call in song_catalogue.likes] == [True, False]
