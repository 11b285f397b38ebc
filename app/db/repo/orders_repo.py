from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import ORDER_STATUS_PAID
from app.db.models.orders import Order, OrderItem


class OrdersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, order_id: UUID) -> Order | None:
        return await session.get(Order, order_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, order_id: UUID) -> Order | None:
        stmt = select(Order).where(Order.id == order_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_user(session: AsyncSession, user_id: UUID) -> list[Order]:
        stmt = select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_items(session: AsyncSession, order_ids: Sequence[UUID]) -> dict[UUID, list[OrderItem]]:
        ids = tuple(set(order_ids))
        if not ids:
            return {}
        stmt = select(OrderItem).where(OrderItem.order_id.in_(ids)).order_by(OrderItem.id.asc())
        result = await session.execute(stmt)
        grouped: dict[UUID, list[OrderItem]] = {order_id: [] for order_id in ids}
        for item in result.scalars().all():
            grouped[item.order_id].append(item)
        return grouped

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        order: Order,
        items: Sequence[OrderItem],
    ) -> Order:
        session.add(order)
        await session.flush()
        for item in items:
            item.order_id = order.id
            session.add(item)
        await session.flush()
        return order

    @staticmethod
    async def set_qr_ticket_url(session: AsyncSession, *, order_id: UUID, qr_ticket_url: str) -> int:
        stmt = update(Order).where(Order.id == order_id).values(qr_ticket_url=qr_ticket_url)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def mark_paid(
        session: AsyncSession,
        *,
        order: Order,
        razorpay_payment_id: str,
        paid_at: datetime,
    ) -> Order:
        order.status = ORDER_STATUS_PAID
        order.razorpay_payment_id = razorpay_payment_id
        order.paid_at = paid_at
        await session.flush()
        return order

    @staticmethod
    async def sum_paid_items_by_kind(session: AsyncSession) -> dict[str, Decimal]:
        """Split paid revenue into merch and ticket line totals."""
        merch_total = func.coalesce(
            func.sum(OrderItem.unit_price * OrderItem.qty).filter(OrderItem.merch_id.is_not(None)),
            0,
        )
        ticket_total = func.coalesce(
            func.sum(OrderItem.unit_price * OrderItem.qty).filter(OrderItem.event_id.is_not(None)),
            0,
        )
        stmt = (
            select(merch_total, ticket_total)
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status == ORDER_STATUS_PAID)
        )
        result = await session.execute(stmt)
        merch, tickets = result.one()
        return {"merch": Decimal(merch), "tickets": Decimal(tickets)}
