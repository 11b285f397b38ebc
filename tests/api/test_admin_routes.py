from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api.routes import admin as admin_routes
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from app.db.repo.orders_repo import OrdersRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from tests.api.helpers import DummySessionLocal, TaskRecorder, auth_headers


def _returning(value):
    async def _fake(session, *args, **kwargs):
        return value

    return _fake


def test_dashboard_aggregates_platform_totals(monkeypatch) -> None:
    monkeypatch.setattr(admin_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(UsersRepo, "count_by_role", _returning({"fan": 40, "artist": 9, "admin": 1}))
    monkeypatch.setattr(UsersRepo, "count_verified_artists", _returning(4))
    monkeypatch.setattr(UsersRepo, "count_active_since", _returning(17))
    monkeypatch.setattr(SongsRepo, "count_all", _returning(120))
    monkeypatch.setattr(SongsRepo, "sum_plays", _returning(5600))
    monkeypatch.setattr(EventsRepo, "count_all", _returning(6))
    monkeypatch.setattr(MerchRepo, "count_all", _returning(22))
    monkeypatch.setattr(
        OrdersRepo,
        "sum_paid_items_by_kind",
        _returning({"merch": Decimal("1500"), "tickets": Decimal("800.5")}),
    )
    monkeypatch.setattr(SubscriptionsRepo, "sum_amount", _returning(Decimal("299")))

    response = TestClient(app).get("/api/admin/dashboard", headers=auth_headers(role="admin"))

    assert response.status_code == 200
    body = response.json()
    assert body["totalUsers"] == 50
    assert body["totalFans"] == 40
    assert body["totalArtists"] == 9
    assert body["verifiedArtists"] == 4
    assert body["totalStreams"] == 5600
    assert body["activeUsers"] == 17
    assert body["revenue"] == {
        "subscriptions": "299.00",
        "merch": "1500.00",
        "events": "800.50",
        "total": "2599.50",
    }


def test_dashboard_is_admin_only() -> None:
    response = TestClient(app).get("/api/admin/dashboard", headers=auth_headers(role="artist"))

    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


def test_verify_artist_updates_profile_and_queues_email(monkeypatch) -> None:
    artist_id = uuid4()
    account = SimpleNamespace(
        id=artist_id,
        name="Ira",
        email="ira@mail.com",
        role="artist",
        avatar_url=None,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    profile = SimpleNamespace(
        bio="",
        social_links={},
        followers=[],
        total_plays=0,
        total_likes=0,
        trending_score=0,
        verified=False,
        featured=False,
    )
    tasks = TaskRecorder()

    async def _update_profile(session, target, values, *, updated_at):
        for key, value in values.items():
            setattr(target, key, value)
        return target

    monkeypatch.setattr(admin_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(admin_routes, "enqueue_task", tasks)
    monkeypatch.setattr(UsersRepo, "get_artist", _returning((account, profile)))
    monkeypatch.setattr(UsersRepo, "update_artist_profile", _update_profile)

    response = TestClient(app).post(
        f"/api/admin/verify-artist/{artist_id}",
        headers=auth_headers(role="admin"),
        json={"approved": False, "reason": "Add a portfolio link"},
    )

    assert response.status_code == 200
    assert response.json()["artist"]["artistProfile"]["verified"] is False
    assert tasks.names() == ["send_artist_verification_email"]
    assert tasks.calls[0][1] == {"artist_id": str(artist_id), "approved": False, "reason": "Add a portfolio link"}


def test_verify_unknown_artist_returns_404(monkeypatch) -> None:
    monkeypatch.setattr(admin_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(UsersRepo, "get_artist", _returning(None))

    response = TestClient(app).post(
        f"/api/admin/verify-artist/{uuid4()}",
        headers=auth_headers(role="admin"),
        json={"approved": True},
    )

    assert response.status_code == 404
