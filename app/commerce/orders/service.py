from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.commerce.cart.constants import ITEM_TYPE_EVENT, ITEM_TYPE_MERCH
from app.commerce.cart.pricing import compute_summary
from app.commerce.cart.types import Cart, CartLine
from app.commerce.orders.errors import (
    CartItemUnavailableError,
    EmptyCartError,
    InvalidPaymentSignatureError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    OrderStateConflictError,
    PaymentOrderMismatchError,
)
from app.commerce.orders.types import CheckoutResult, PaymentVerificationResult
from app.core.constants import (
    DEFAULT_CURRENCY,
    ORDER_STATUS_PAID,
    ORDER_STATUS_PENDING,
    ORDER_TYPE_MERCH,
    ORDER_TYPE_MIXED,
    ORDER_TYPE_TICKET,
)
from app.db.models.orders import Order, OrderItem
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from app.db.repo.orders_repo import OrdersRepo
from app.db.repo.users_repo import UsersRepo
from app.services import payments_gateway
from app.services.analytics import AnalyticsService

logger = structlog.get_logger(__name__)


class OrderService:
    @staticmethod
    def resolve_order_type(lines: list[CartLine]) -> str:
        has_tickets = any(line.item_type == ITEM_TYPE_EVENT for line in lines)
        has_merch = any(line.item_type == ITEM_TYPE_MERCH for line in lines)
        if has_tickets and has_merch:
            return ORDER_TYPE_MIXED
        if has_tickets:
            return ORDER_TYPE_TICKET
        return ORDER_TYPE_MERCH

    @staticmethod
    async def reprice_cart(session: AsyncSession, cart: Cart) -> Cart:
        """Refresh every line from the catalogue so checkout never trusts a stale cart price."""
        merch_ids = [UUID(line.item_id) for line in cart.items if line.item_type == ITEM_TYPE_MERCH]
        event_ids = [UUID(line.item_id) for line in cart.items if line.item_type == ITEM_TYPE_EVENT]
        merch_by_id = {str(item.id): item for item in await MerchRepo.list_by_ids(session, merch_ids)}
        events_by_id = {str(event.id): event for event in await EventsRepo.list_by_ids(session, event_ids)}

        for line in cart.items:
            if line.item_type == ITEM_TYPE_MERCH:
                merch = merch_by_id.get(line.item_id)
                if merch is None:
                    raise CartItemUnavailableError(line.item_id)
                line.price = merch.price
                line.name = merch.name
            else:
                event = events_by_id.get(line.item_id)
                if event is None:
                    raise CartItemUnavailableError(line.item_id)
                line.price = event.ticket_price
                line.name = event.title

        cart.summary = compute_summary(cart.items, promo_code=cart.promo_code)
        return cart

    @staticmethod
    async def checkout(
        session: AsyncSession,
        *,
        user_id: UUID,
        cart: Cart | None,
        shipping_address: dict[str, str] | None,
        now_utc: datetime,
    ) -> CheckoutResult:
        if cart is None or cart.is_empty:
            raise EmptyCartError

        cart = await OrderService.reprice_cart(session, cart)
        summary = cart.summary
        order = Order(
            id=uuid4(),
            user_id=user_id,
            type=OrderService.resolve_order_type(cart.items),
            subtotal_amount=summary.subtotal,
            discount_amount=summary.discount,
            tax_amount=summary.tax,
            total_amount=summary.total,
            promo_code=cart.promo_code,
            currency=DEFAULT_CURRENCY,
            status=ORDER_STATUS_PENDING,
            shipping_address=shipping_address,
            created_at=now_utc,
        )
        items = [
            OrderItem(
                merch_id=UUID(line.item_id) if line.item_type == ITEM_TYPE_MERCH else None,
                event_id=UUID(line.item_id) if line.item_type == ITEM_TYPE_EVENT else None,
                name=line.name,
                qty=line.quantity,
                unit_price=line.price,
            )
            for line in cart.items
        ]
        await OrdersRepo.create(session, order=order, items=items)

        gateway_order = await payments_gateway.create_gateway_order(
            amount=order.total_amount,
            currency=order.currency,
            receipt=str(order.id),
        )
        order.razorpay_order_id = str(gateway_order["id"])
        await session.flush()

        logger.info(
            "order_created",
            order_id=str(order.id),
            user_id=str(user_id),
            order_type=order.type,
            total_amount=str(order.total_amount),
        )
        return CheckoutResult(order=order, items=items, gateway_order=gateway_order)

    @staticmethod
    async def _credit_artists(session: AsyncSession, *, items: list[OrderItem]) -> None:
        merch_ids = [item.merch_id for item in items if item.merch_id is not None]
        event_ids = [item.event_id for item in items if item.event_id is not None]
        merch_owner = {m.id: m.artist_id for m in await MerchRepo.list_by_ids(session, merch_ids)}
        event_owner = {e.id: e.artist_id for e in await EventsRepo.list_by_ids(session, event_ids)}

        merch_revenue: dict[UUID, Decimal] = defaultdict(Decimal)
        event_revenue: dict[UUID, Decimal] = defaultdict(Decimal)
        for item in items:
            line_total = item.unit_price * item.qty
            if item.merch_id is not None:
                await MerchRepo.increment_orders_count(session, merch_id=item.merch_id, qty=item.qty)
                artist_id = merch_owner.get(item.merch_id)
                if artist_id is not None:
                    merch_revenue[artist_id] += line_total
            elif item.event_id is not None:
                artist_id = event_owner.get(item.event_id)
                if artist_id is not None:
                    event_revenue[artist_id] += line_total

        for artist_id in set(merch_revenue) | set(event_revenue):
            await UsersRepo.add_artist_revenue(
                session,
                user_id=artist_id,
                merch=merch_revenue.get(artist_id, Decimal("0")),
                events=event_revenue.get(artist_id, Decimal("0")),
            )

    @staticmethod
    async def verify_payment(
        session: AsyncSession,
        *,
        user_id: UUID,
        order_db_id: UUID,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        signature: str,
        now_utc: datetime,
    ) -> PaymentVerificationResult:
        if not payments_gateway.verify_payment_signature(
            order_id=razorpay_order_id,
            payment_id=razorpay_payment_id,
            signature=signature,
        ):
            logger.warning("payment_signature_invalid", order_id=str(order_db_id), user_id=str(user_id))
            raise InvalidPaymentSignatureError

        order = await OrdersRepo.get_by_id_for_update(session, order_db_id)
        if order is None:
            raise OrderNotFoundError
        if order.user_id != user_id:
            raise OrderAccessDeniedError
        if order.razorpay_order_id != razorpay_order_id:
            raise PaymentOrderMismatchError

        items = (await OrdersRepo.list_items(session, [order.id])).get(order.id, [])
        if order.status == ORDER_STATUS_PAID:
            if order.razorpay_payment_id == razorpay_payment_id:
                return PaymentVerificationResult(order=order, items=items, idempotent_replay=True)
            raise OrderStateConflictError
        if order.status != ORDER_STATUS_PENDING:
            raise OrderStateConflictError

        await OrdersRepo.mark_paid(
            session,
            order=order,
            razorpay_payment_id=razorpay_payment_id,
            paid_at=now_utc,
        )
        await OrderService._credit_artists(session, items=items)
        await AnalyticsService.track_purchase(
            session,
            user_id=user_id,
            order_id=order.id,
            amount=order.total_amount,
            order_type=order.type,
            happened_at=now_utc,
        )
        logger.info("order_paid", order_id=str(order.id), user_id=str(user_id), order_type=order.type)
        return PaymentVerificationResult(order=order, items=items, idempotent_replay=False)
