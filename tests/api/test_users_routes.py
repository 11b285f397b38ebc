from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import users as users_routes
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from app.services.analytics import AnalyticsService
from tests.api.helpers import DummySessionLocal, auth_headers

ARTIST_ID = uuid4()


@pytest.fixture
def social_env(monkeypatch) -> SimpleNamespace:
    env = SimpleNamespace(
        accounts={},
        profile=SimpleNamespace(followers=[]),
        songs=set(),
        follows=[],
    )

    async def _get_artist(session, user_id):
        return (SimpleNamespace(id=ARTIST_ID), env.profile) if user_id == ARTIST_ID else None

    async def _get_account(session, user_id):
        return env.accounts.get(user_id)

    async def _update_fields(session, user, values):
        for key, value in values.items():
            setattr(user, key, value)
        return user

    async def _add_follower(session, *, artist_id, follower_id, updated_at):
        env.profile.followers.append(str(follower_id))
        return 1

    async def _remove_follower(session, *, artist_id, follower_id, updated_at):
        env.profile.followers.remove(str(follower_id))
        return 1

    async def _get_song(session, song_id):
        return SimpleNamespace(id=song_id) if song_id in env.songs else None

    async def _track_follow(session, **kwargs):
        env.follows.append(kwargs["following"])

    monkeypatch.setattr(users_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(UsersRepo, "get_artist", _get_artist)
    monkeypatch.setattr(UsersRepo, "get_by_id", _get_account)
    monkeypatch.setattr(UsersRepo, "get_by_id_for_update", _get_account)
    monkeypatch.setattr(UsersRepo, "update_fields", _update_fields)
    monkeypatch.setattr(UsersRepo, "add_follower", _add_follower)
    monkeypatch.setattr(UsersRepo, "remove_follower", _remove_follower)
    monkeypatch.setattr(SongsRepo, "get_by_id", _get_song)
    monkeypatch.setattr(AnalyticsService, "track_follow", _track_follow)
    return env


def _fan(env: SimpleNamespace) -> SimpleNamespace:
    fan = SimpleNamespace(id=uuid4(), following=[], favorites={"artists": [], "songs": [], "events": []})
    env.accounts[fan.id] = fan
    return fan


def test_follow_toggles_both_sides(social_env) -> None:
    fan = _fan(social_env)
    client = TestClient(app)

    first = client.post(f"/api/users/follow/{ARTIST_ID}", headers=auth_headers(user_id=fan.id))
    assert first.json() == {"following": True}
    assert fan.following == [str(ARTIST_ID)]
    assert social_env.profile.followers == [str(fan.id)]

    second = client.post(f"/api/users/follow/{ARTIST_ID}", headers=auth_headers(user_id=fan.id))
    assert second.json() == {"following": False}
    assert fan.following == []
    assert social_env.profile.followers == []
    assert social_env.follows == [True, False]


def test_following_yourself_is_rejected(social_env) -> None:
    response = TestClient(app).post(
        f"/api/users/follow/{ARTIST_ID}",
        headers=auth_headers(role="artist", user_id=ARTIST_ID),
    )

    assert response.status_code == 400


def test_following_unknown_artist_returns_404(social_env) -> None:
    fan = _fan(social_env)

    response = TestClient(app).post(f"/api/users/follow/{uuid4()}", headers=auth_headers(user_id=fan.id))

    assert response.status_code == 404


def test_favorite_song_toggle(social_env) -> None:
    fan = _fan(social_env)
    song_id = uuid4()
    social_env.songs.add(song_id)
    client = TestClient(app)

    added = client.post(f"/api/users/me/favorites/songs/{song_id}", headers=auth_headers(user_id=fan.id))
    removed = client.post(f"/api/users/me/favorites/songs/{song_id}", headers=auth_headers(user_id=fan.id))

    assert added.json()["favorited"] is True
    assert added.json()["favorites"]["songs"] == [str(song_id)]
    assert removed.json()["favorited"] is False
    assert fan.favorites["songs"] == []


def test_favoriting_missing_song_returns_404(social_env) -> None:
    fan = _fan(social_env)

    response = TestClient(app).post(f"/api/users/me/favorites/songs/{uuid4()}", headers=auth_headers(user_id=fan.id))

    assert response.status_code == 404
    assert fan.favorites["songs"] == []
