from __future__ import annotations

from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.commerce.cart.constants import CART_ITEM_TYPES, ITEM_TYPE_EVENT, ITEM_TYPE_MERCH, MAX_LINE_QUANTITY
from app.commerce.cart.errors import CartItemNotFoundError, CartNotFoundError, InvalidCartItemError
from app.commerce.cart.pricing import compute_summary, resolve_promo_discount
from app.commerce.cart.store import CartStore
from app.commerce.cart.types import Cart, CartLine
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo

logger = structlog.get_logger(__name__)


class CartService:
    @staticmethod
    def _new_line_id() -> str:
        return f"cart_{uuid4().hex[:16]}"

    @staticmethod
    def _reprice(cart: Cart) -> Cart:
        cart.summary = compute_summary(cart.items, promo_code=cart.promo_code)
        return cart

    @staticmethod
    async def _load_existing(store: CartStore, user_id: UUID) -> Cart:
        cart = await store.load(user_id)
        if cart is None:
            raise CartNotFoundError
        return cart

    @staticmethod
    async def build_line(
        session: AsyncSession,
        *,
        item_type: str,
        item_id: UUID,
        quantity: int,
    ) -> CartLine:
        if item_type == ITEM_TYPE_MERCH:
            merch = await MerchRepo.get_by_id(session, item_id)
            if merch is None:
                raise CartItemNotFoundError
            return CartLine(
                line_id=CartService._new_line_id(),
                item_type=ITEM_TYPE_MERCH,
                item_id=str(merch.id),
                name=merch.name,
                price=merch.price,
                quantity=quantity,
                image=merch.images[0] if merch.images else None,
            )
        if item_type == ITEM_TYPE_EVENT:
            event = await EventsRepo.get_by_id(session, item_id)
            if event is None:
                raise CartItemNotFoundError
            return CartLine(
                line_id=CartService._new_line_id(),
                item_type=ITEM_TYPE_EVENT,
                item_id=str(event.id),
                name=event.title,
                price=event.ticket_price,
                quantity=quantity,
                image=event.image_url,
            )
        raise InvalidCartItemError

    @staticmethod
    async def get_cart(store: CartStore, *, user_id: UUID) -> Cart:
        cart = await store.load(user_id)
        return cart if cart is not None else Cart()

    @staticmethod
    async def add_item(
        session: AsyncSession,
        store: CartStore,
        *,
        user_id: UUID,
        item_type: str,
        item_id: UUID,
        quantity: int = 1,
    ) -> Cart:
        if item_type not in CART_ITEM_TYPES or quantity < 1:
            raise InvalidCartItemError

        cart = await store.load(user_id) or Cart()
        existing = cart.find_item(item_type=item_type, item_id=str(item_id))
        if existing is not None:
            existing.quantity = min(existing.quantity + quantity, MAX_LINE_QUANTITY)
        else:
            line = await CartService.build_line(
                session,
                item_type=item_type,
                item_id=item_id,
                quantity=min(quantity, MAX_LINE_QUANTITY),
            )
            cart.items.append(line)

        CartService._reprice(cart)
        await store.save(user_id, cart)
        logger.info("cart_item_added", user_id=str(user_id), item_type=item_type, item_id=str(item_id))
        return cart

    @staticmethod
    async def update_item(store: CartStore, *, user_id: UUID, line_id: str, quantity: int) -> Cart:
        cart = await CartService._load_existing(store, user_id)
        line = cart.find_line(line_id)
        if line is not None:
            if quantity <= 0:
                cart.items.remove(line)
            else:
                line.quantity = min(quantity, MAX_LINE_QUANTITY)

        CartService._reprice(cart)
        await store.save(user_id, cart)
        return cart

    @staticmethod
    async def remove_item(store: CartStore, *, user_id: UUID, line_id: str) -> Cart:
        cart = await CartService._load_existing(store, user_id)
        cart.items = [line for line in cart.items if line.line_id != line_id]

        CartService._reprice(cart)
        await store.save(user_id, cart)
        return cart

    @staticmethod
    async def apply_promo(store: CartStore, *, user_id: UUID, code: str) -> Cart:
        cart = await CartService._load_existing(store, user_id)
        normalized_code, _ = resolve_promo_discount(code)
        cart.promo_code = normalized_code

        CartService._reprice(cart)
        await store.save(user_id, cart)
        logger.info("cart_promo_applied", user_id=str(user_id), promo_code=normalized_code)
        return cart

    @staticmethod
    async def clear(store: CartStore, *, user_id: UUID) -> None:
        await store.clear(user_id)
