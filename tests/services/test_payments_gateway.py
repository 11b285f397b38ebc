from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from app.core.config import get_settings
from app.services import payments_gateway
from app.services.payments_gateway import (
    PaymentGatewayError,
    compute_payment_signature,
    create_gateway_order,
    to_minor_units,
    verify_payment_signature,
)


def _mock_transport(monkeypatch, handler) -> None:
    real_client = httpx.AsyncClient

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(payments_gateway.httpx, "AsyncClient", _client)


@pytest.mark.parametrize(
    ("amount", "expected"),
    [(Decimal("2950.00"), 295000), (Decimal("0.01"), 1), (Decimal("10.005"), 1001)],
)
def test_to_minor_units(amount: Decimal, expected: int) -> None:
    assert to_minor_units(amount) == expected


def test_signature_verification_accepts_only_matching_signature() -> None:
    signature = compute_payment_signature(
        order_id="order_A",
        payment_id="pay_B",
        key_secret=get_settings().razorpay_key_secret,
    )

    assert verify_payment_signature(order_id="order_A", payment_id="pay_B", signature=signature) is True
    assert verify_payment_signature(order_id="order_A", payment_id="pay_C", signature=signature) is False
    assert verify_payment_signature(order_id="order_A", payment_id="pay_B", signature="") is False


async def test_create_gateway_order_posts_minor_units(monkeypatch) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "order_N1", "amount": 106200, "currency": "INR"})

    _mock_transport(monkeypatch, handler)

    body = await create_gateway_order(amount=Decimal("1062.00"), currency="INR", receipt="rcpt-1")

    assert body["id"] == "order_N1"
    assert seen[0].url.path.endswith("/orders")
    assert json.loads(seen[0].content) == {
        "amount": 106200,
        "currency": "INR",
        "receipt": "rcpt-1",
        "payment_capture": 1,
    }
    assert seen[0].headers["Authorization"].startswith("Basic ")


async def test_create_gateway_order_failure_raises(monkeypatch) -> None:
    _mock_transport(monkeypatch, lambda request: httpx.Response(502))

    with pytest.raises(PaymentGatewayError):
        await create_gateway_order(amount=Decimal("10.00"), currency="INR", receipt="rcpt-2")


async def test_create_gateway_order_without_id_raises(monkeypatch) -> None:
    _mock_transport(monkeypatch, lambda request: httpx.Response(200, json={"status": "created"}))

    with pytest.raises(PaymentGatewayError):
        await create_gateway_order(amount=Decimal("10.00"), currency="INR", receipt="rcpt-3")


async def test_create_gateway_order_non_json_body_raises(monkeypatch) -> None:
    _mock_transport(monkeypatch, lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(PaymentGatewayError):
        await create_gateway_order(amount=Decimal("10.00"), currency="INR", receipt="rcpt-4")
