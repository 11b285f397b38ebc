from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from app.api.routes import analytics as analytics_routes
from app.main import app
from tests.api.helpers import DummySessionLocal, auth_headers


def _patch(monkeypatch) -> list[dict]:
    emitted: list[dict] = []

    async def _emit(session, **kwargs):
        emitted.append(kwargs)

    monkeypatch.setattr(analytics_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(analytics_routes, "emit_analytics_event", _emit)
    return emitted


def test_log_event_records_caller_and_ids(monkeypatch) -> None:
    emitted = _patch(monkeypatch)
    user_id = uuid4()
    song_id = uuid4()

    response = TestClient(app).post(
        "/api/analytics",
        headers=auth_headers(user_id=user_id),
        json={"action": "share", "context": "player", "songId": str(song_id), "metadata": {"via": "whatsapp"}},
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Event logged"}
    assert emitted[0]["user_id"] == user_id
    assert emitted[0]["song_id"] == song_id
    assert emitted[0]["metadata"] == {"via": "whatsapp"}


def test_unknown_action_is_rejected(monkeypatch) -> None:
    emitted = _patch(monkeypatch)

    response = TestClient(app).post(
        "/api/analytics",
        headers=auth_headers(),
        json={"action": "teleport", "context": "player"},
    )

    assert response.status_code == 400
    assert emitted == []


def test_malformed_reference_id_is_rejected(monkeypatch) -> None:
    emitted = _patch(monkeypatch)

    response = TestClient(app).post(
        "/api/analytics",
        headers=auth_headers(),
        json={"action": "view", "context": "home", "artistId": "nope"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid artistId"
    assert emitted == []


def test_logging_requires_auth(monkeypatch) -> None:
    _patch(monkeypatch)

    response = TestClient(app).post("/api/analytics", json={"action": "view", "context": "home"})

    assert response.status_code == 401
