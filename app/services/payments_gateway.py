from __future__ import annotations

import hashlib
import hmac
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)

RAZORPAY_TIMEOUT_SECONDS = 15.0


class PaymentGatewayError(Exception):
    pass


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_payment_signature(*, order_id: str, payment_id: str, key_secret: str) -> str:
    body = f"{order_id}|{payment_id}"
    return hmac.new(key_secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_payment_signature(*, order_id: str, payment_id: str, signature: str) -> bool:
    if not order_id or not payment_id or not signature:
        return False
    expected = compute_payment_signature(
        order_id=order_id,
        payment_id=payment_id,
        key_secret=get_settings().razorpay_key_secret,
    )
    return hmac.compare_digest(expected, signature.strip())


async def create_gateway_order(
    *,
    amount: Decimal,
    currency: str,
    receipt: str,
) -> dict[str, Any]:
    settings = get_settings()
    payload = {
        "amount": to_minor_units(amount),
        "currency": currency,
        "receipt": receipt,
        "payment_capture": 1,
    }
    try:
        async with httpx.AsyncClient(
            base_url=settings.razorpay_api_url,
            auth=(settings.razorpay_key_id, settings.razorpay_key_secret),
            timeout=RAZORPAY_TIMEOUT_SECONDS,
        ) as client:
            response = await client.post("/orders", json=payload)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.exception("razorpay_order_create_failed", receipt=receipt)
        raise PaymentGatewayError("razorpay order creation failed") from exc

    try:
        body = response.json()
    except ValueError as exc:
        logger.error("razorpay_order_create_unexpected_response", receipt=receipt)
        raise PaymentGatewayError("razorpay order response is not json") from exc
    if not isinstance(body, dict) or not body.get("id"):
        logger.error("razorpay_order_create_unexpected_response", receipt=receipt)
        raise PaymentGatewayError("razorpay order response has no id")
    return body
