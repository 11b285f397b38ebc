from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import subscriptions as subscriptions_routes
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from app.services.analytics import AnalyticsService
from tests.api.helpers import DummySessionLocal, auth_headers

ARTIST_ID = uuid4()


@pytest.fixture
def subscription_env(monkeypatch) -> SimpleNamespace:
    env = SimpleNamespace(created=[], revenue=[], tracked=[])

    async def _get_artist(session, user_id):
        return (SimpleNamespace(id=ARTIST_ID), SimpleNamespace()) if user_id == ARTIST_ID else None

    async def _create(session, *, subscription):
        subscription.id = uuid4()
        env.created.append(subscription)
        return subscription

    async def _add_revenue(session, *, user_id, **amounts):
        env.revenue.append((user_id, amounts))
        return 1

    async def _track(session, **kwargs):
        env.tracked.append(kwargs)

    monkeypatch.setattr(subscriptions_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(UsersRepo, "get_artist", _get_artist)
    monkeypatch.setattr(SubscriptionsRepo, "create", _create)
    monkeypatch.setattr(UsersRepo, "add_artist_revenue", _add_revenue)
    monkeypatch.setattr(AnalyticsService, "track_subscribe", _track)
    return env


def test_subscribe_creates_thirty_day_subscription(subscription_env) -> None:
    fan_id = uuid4()
    response = TestClient(app).post(
        "/api/subscriptions",
        headers=auth_headers(user_id=fan_id),
        json={"artistId": str(ARTIST_ID), "plan": "GOLD", "amount": "299.00"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["tier"] == "GOLD"
    assert body["amount"] == "299.00"
    assert body["currency"] == "INR"
    assert body["active"] is True
    created = subscription_env.created[0]
    assert (created.end_date - created.start_date).days == 30
    assert subscription_env.revenue == [(ARTIST_ID, {"subscriptions": Decimal("299.00")})]
    assert subscription_env.tracked[0]["user_id"] == fan_id


def test_subscribe_to_unknown_artist_returns_404(subscription_env) -> None:
    response = TestClient(app).post(
        "/api/subscriptions",
        headers=auth_headers(),
        json={"artistId": str(uuid4()), "plan": "BRONZE", "amount": "49"},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Artist not found"
    assert subscription_env.created == []


def test_subscribe_rejects_unknown_tier(subscription_env) -> None:
    response = TestClient(app).post(
        "/api/subscriptions",
        headers=auth_headers(),
        json={"artistId": str(ARTIST_ID), "plan": "PLATINUM", "amount": "49"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "E_VALIDATION"
