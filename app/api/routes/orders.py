from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token, parse_resource_id
from app.api.schemas import OrderCreateRequest, PaymentVerifyRequest
from app.api.serializers import order_view
from app.commerce.cart.store import get_cart_store
from app.commerce.orders.errors import (
    CartItemUnavailableError,
    EmptyCartError,
    InvalidPaymentSignatureError,
    OrderAccessDeniedError,
    OrderError,
    OrderNotFoundError,
    OrderStateConflictError,
    PaymentOrderMismatchError,
)
from app.commerce.orders.service import OrderService
from app.db.repo.orders_repo import OrdersRepo
from app.db.session import SessionLocal
from app.services.payments_gateway import PaymentGatewayError
from app.workers.dispatch import enqueue_task
from app.workers.tasks.notifications import issue_order_tickets, send_order_confirmation

router = APIRouter(tags=["orders"])
logger = structlog.get_logger(__name__)


def _order_http_error(exc: OrderError) -> HTTPException:
    if isinstance(exc, EmptyCartError):
        return api_error(400, "E_CART_EMPTY", "Cart is empty")
    if isinstance(exc, CartItemUnavailableError):
        return api_error(404, "E_NOT_FOUND", "Item not found")
    if isinstance(exc, InvalidPaymentSignatureError):
        return api_error(400, "E_PAYMENT_SIGNATURE_INVALID", "Invalid payment signature")
    if isinstance(exc, PaymentOrderMismatchError):
        return api_error(400, "E_PAYMENT_ORDER_MISMATCH", "Payment does not match order")
    if isinstance(exc, OrderNotFoundError):
        return api_error(404, "E_NOT_FOUND", "Order not found")
    if isinstance(exc, OrderAccessDeniedError):
        return api_error(403, "E_FORBIDDEN", "Access denied")
    if isinstance(exc, OrderStateConflictError):
        return api_error(409, "E_ORDER_STATE_CONFLICT", "Order is not awaiting payment")
    return api_error(400, "E_ORDER_INVALID", "Invalid order")


@router.post("/api/orders")
async def create_order(
    payload: OrderCreateRequest | None = Body(default=None),
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, Any]:
    store = get_cart_store()
    cart = await store.load(user.id)
    shipping_address = None
    if payload is not None and payload.shipping_address is not None:
        shipping_address = payload.shipping_address.model_dump(by_alias=True, exclude_none=True)

    try:
        async with SessionLocal.begin() as session:
            result = await OrderService.checkout(
                session,
                user_id=user.id,
                cart=cart,
                shipping_address=shipping_address,
                now_utc=datetime.now(timezone.utc),
            )
            response = {
                "order": order_view(result.order, result.items),
                "razorpayOrder": result.gateway_order,
            }
    except OrderError as exc:
        raise _order_http_error(exc) from exc
    except PaymentGatewayError as exc:
        logger.warning("checkout_gateway_failed", user_id=str(user.id), error_type=type(exc).__name__)
        raise api_error(502, "E_PAYMENT_GATEWAY", "Payment provider unavailable") from exc
    return response


@router.post("/api/payments/verify")
async def verify_payment(payload: PaymentVerifyRequest, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    order_db_id = parse_resource_id(payload.order_db_id, not_found_message="Order not found")
    try:
        async with SessionLocal.begin() as session:
            result = await OrderService.verify_payment(
                session,
                user_id=user.id,
                order_db_id=order_db_id,
                razorpay_order_id=payload.order_id,
                razorpay_payment_id=payload.payment_id,
                signature=payload.signature,
                now_utc=datetime.now(timezone.utc),
            )
            order_payload = order_view(result.order, result.items)
    except OrderError as exc:
        raise _order_http_error(exc) from exc

    if not result.idempotent_replay:
        await get_cart_store().clear(user.id)
        order_id = str(result.order.id)
        await enqueue_task(send_order_confirmation, order_id=order_id)
        if result.has_tickets:
            await enqueue_task(issue_order_tickets, order_id=order_id)

    return {"message": "Payment verified successfully", "order": order_payload}


@router.get("/api/orders/me")
async def my_orders(user: AuthUser = Depends(authenticate_token)) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        orders = await OrdersRepo.list_by_user(session, user.id)
        items_by_order = await OrdersRepo.list_items(session, [order.id for order in orders])
    return [order_view(order, items_by_order.get(order.id, [])) for order in orders]


@router.get("/api/orders/{order_id}")
async def get_order(order_id: str, user: AuthUser = Depends(authenticate_token)) -> dict[str, Any]:
    target_id = parse_resource_id(order_id, not_found_message="Order not found")
    async with SessionLocal.begin() as session:
        order = await OrdersRepo.get_by_id(session, target_id)
        if order is None:
            raise api_error(404, "E_NOT_FOUND", "Order not found")
        if order.user_id != user.id:
            raise api_error(403, "E_FORBIDDEN", "Access denied")
        items = (await OrdersRepo.list_items(session, [order.id])).get(order.id, [])
    return order_view(order, items)
