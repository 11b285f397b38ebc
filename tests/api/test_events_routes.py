from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import events as events_routes
from app.db.repo.events_repo import EVENT_DATE_WINDOWS, EventsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from tests.api.helpers import DummySessionLocal, auth_headers

OWNER_ID = uuid4()
OTHER_ARTIST_ID = uuid4()


def _event(**overrides) -> SimpleNamespace:
    values = dict(
        id=uuid4(),
        artist_id=OWNER_ID,
        title="Rooftop Session",
        description="Acoustic set",
        date=datetime(2026, 11, 20, 18, 30, tzinfo=timezone.utc),
        location="Mumbai",
        online_url=None,
        ticket_price=Decimal("499.00"),
        capacity=120,
        image_url=None,
        attendees=[],
        created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def events_env(monkeypatch) -> SimpleNamespace:
    env = SimpleNamespace(events={}, filters=[], created=[], deleted=[], uploads=[])

    async def _list_filtered(session, **kwargs):
        env.filters.append(kwargs)
        return [(event, "Kavi") for event in env.events.values()]

    async def _get_by_id(session, event_id):
        return env.events.get(event_id)

    async def _get_artist(session, user_id):
        return (SimpleNamespace(id=user_id), SimpleNamespace())

    async def _create(session, *, event):
        event.id = uuid4()
        event.created_at = datetime(2026, 10, 17, tzinfo=timezone.utc)
        env.created.append(event)
        return event

    async def _update_fields(session, event, values):
        for key, value in values.items():
            setattr(event, key, value)
        return event

    async def _delete(session, event_id):
        env.deleted.append(event_id)
        return 1

    async def _upload_images(files, *, folder, prefix):
        env.uploads.append(len(files))
        return [f"https://media.example/{prefix}_{index}.jpg" for index in range(len(files))]

    monkeypatch.setattr(events_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(events_routes, "upload_images", _upload_images)
    monkeypatch.setattr(EventsRepo, "list_filtered", _list_filtered)
    monkeypatch.setattr(EventsRepo, "get_by_id", _get_by_id)
    monkeypatch.setattr(EventsRepo, "create", _create)
    monkeypatch.setattr(EventsRepo, "update_fields", _update_fields)
    monkeypatch.setattr(EventsRepo, "delete", _delete)
    monkeypatch.setattr(UsersRepo, "get_artist", _get_artist)
    return env


def _owner_headers() -> dict[str, str]:
    return auth_headers(role="artist", user_id=OWNER_ID, name="Kavi")


@pytest.mark.parametrize("window", EVENT_DATE_WINDOWS)
def test_list_passes_date_window_to_repo(events_env, window: str) -> None:
    response = TestClient(app).get("/api/events", params={"date": window, "location": "all-locations"})

    assert response.status_code == 200
    [filters] = events_env.filters
    assert filters["date_window"] == window
    assert filters["location"] == "all-locations"
    assert filters["now_utc"].tzinfo is not None


def test_list_rejects_unknown_date_window(events_env) -> None:
    response = TestClient(app).get("/api/events", params={"date": "next-year"})

    assert response.status_code == 400
    assert response.json()["code"] == "E_VALIDATION"
    assert events_env.filters == []


def test_list_serializes_event_fields(events_env) -> None:
    event = _event(attendees=[str(uuid4()), str(uuid4())])
    events_env.events[event.id] = event

    response = TestClient(app).get("/api/events")

    assert response.status_code == 200
    [body] = response.json()
    assert body["ticketPrice"] == "499.00"
    assert body["attendeesCount"] == 2
    assert body["artistName"] == "Kavi"


def test_create_treats_naive_date_as_utc(events_env) -> None:
    response = TestClient(app).post(
        "/api/events",
        json={"title": "Launch", "date": "2026-12-01T19:00:00", "location": "Pune", "ticketPrice": "0"},
        headers=_owner_headers(),
    )

    assert response.status_code == 200
    assert events_env.created[0].date == datetime(2026, 12, 1, 19, 0, tzinfo=timezone.utc)
    assert response.json()["date"] == "2026-12-01T19:00:00+00:00"


def test_create_accepts_one_image(events_env) -> None:
    response = TestClient(app).post(
        "/api/events",
        data={"data": json.dumps({"title": "Launch", "date": "2026-12-01T19:00:00Z", "location": "Pune", "ticketPrice": "10"})},
        files=[("image", ("poster.png", b"\x89PNG", "image/png"))],
        headers=_owner_headers(),
    )

    assert response.status_code == 200
    assert response.json()["imageUrl"] == "https://media.example/event_0.jpg"
    assert events_env.uploads == [1]


def test_create_rejects_second_image(events_env) -> None:
    response = TestClient(app).post(
        "/api/events",
        data={"data": json.dumps({"title": "Launch", "date": "2026-12-01T19:00:00Z", "location": "Pune", "ticketPrice": "10"})},
        files=[
            ("image", ("a.png", b"\x89PNG", "image/png")),
            ("image", ("b.png", b"\x89PNG", "image/png")),
        ],
        headers=_owner_headers(),
    )

    assert response.status_code == 400
    assert events_env.uploads == []
    assert events_env.created == []


def test_owner_update_normalizes_date(events_env) -> None:
    event = _event()
    events_env.events[event.id] = event

    response = TestClient(app).patch(
        f"/api/events/{event.id}",
        json={"date": "2027-01-05T10:00:00", "capacity": 80},
        headers=_owner_headers(),
    )

    assert response.status_code == 200
    assert event.date == datetime(2027, 1, 5, 10, 0, tzinfo=timezone.utc)
    assert response.json()["capacity"] == 80


def test_other_artist_cannot_update_or_delete(events_env) -> None:
    event = _event()
    events_env.events[event.id] = event
    headers = auth_headers(role="artist", user_id=OTHER_ARTIST_ID)
    client = TestClient(app)

    patched = client.patch(f"/api/events/{event.id}", json={"title": "Hijacked"}, headers=headers)
    deleted = client.delete(f"/api/events/{event.id}", headers=headers)

    assert patched.status_code == 403
    assert patched.json() == {"message": "Not authorized to modify this event", "code": "E_FORBIDDEN"}
    assert deleted.status_code == 403
    assert event.title == "Rooftop Session"
    assert events_env.deleted == []


def test_missing_event_returns_404(events_env) -> None:
    client = TestClient(app)

    patched = client.patch(f"/api/events/{uuid4()}", json={"title": "Nope"}, headers=_owner_headers())
    deleted = client.delete(f"/api/events/{uuid4()}", headers=_owner_headers())
    malformed = client.delete("/api/events/not-a-uuid", headers=_owner_headers())

    assert patched.status_code == 404
    assert patched.json()["message"] == "Event not found"
    assert deleted.status_code == 404
    assert malformed.status_code == 404


def test_fan_cannot_create_event(events_env) -> None:
    response = TestClient(app).post(
        "/api/events",
        json={"title": "Launch", "date": "2026-12-01T19:00:00Z", "location": "Pune", "ticketPrice": "0"},
        headers=auth_headers(),
    )

    assert response.status_code == 403
    assert events_env.created == []


def test_owner_delete(events_env) -> None:
    event = _event()
    events_env.events[event.id] = event

    response = TestClient(app).delete(f"/api/events/{event.id}", headers=_owner_headers())

    assert response.status_code == 200
    assert response.json() == {"message": "Event deleted successfully"}
    assert events_env.deleted == [event.id]
