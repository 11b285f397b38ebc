from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.commerce.cart.errors import CartItemNotFoundError, CartNotFoundError, InvalidCartItemError
from app.commerce.cart.service import CartService
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from tests.api.helpers import DummySession, InMemoryCartStore

TEE = SimpleNamespace(id=uuid4(), name="Logo Tee", price=Decimal("599.00"), images=["https://img/tee.jpg"])
SHOW = SimpleNamespace(id=uuid4(), title="Rooftop Set", ticket_price=Decimal("800.00"), image_url=None)


@pytest.fixture
def catalogue(monkeypatch) -> None:
    async def _merch(session, merch_id):
        return TEE if merch_id == TEE.id else None

    async def _event(session, event_id):
        return SHOW if event_id == SHOW.id else None

    monkeypatch.setattr(MerchRepo, "get_by_id", _merch)
    monkeypatch.setattr(EventsRepo, "get_by_id", _event)


async def test_add_item_builds_line_from_catalogue(catalogue) -> None:
    store = InMemoryCartStore()
    user_id = uuid4()

    cart = await CartService.add_item(
        DummySession(), store, user_id=user_id, item_type="merch", item_id=TEE.id, quantity=2
    )

    assert len(cart.items) == 1
    line = cart.items[0]
    assert line.line_id.startswith("cart_")
    assert line.name == "Logo Tee"
    assert line.image == "https://img/tee.jpg"
    assert cart.summary.subtotal == Decimal("1198.00")
    assert store.carts[user_id].items[0].quantity == 2


async def test_adding_same_item_merges_quantity_and_caps_it(catalogue) -> None:
    store = InMemoryCartStore()
    user_id = uuid4()

    await CartService.add_item(DummySession(), store, user_id=user_id, item_type="event", item_id=SHOW.id, quantity=60)
    cart = await CartService.add_item(
        DummySession(), store, user_id=user_id, item_type="event", item_id=SHOW.id, quantity=60
    )

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 99


async def test_add_unknown_item_raises(catalogue) -> None:
    with pytest.raises(CartItemNotFoundError):
        await CartService.add_item(
            DummySession(), InMemoryCartStore(), user_id=uuid4(), item_type="merch", item_id=uuid4()
        )


async def test_add_rejects_unknown_type(catalogue) -> None:
    with pytest.raises(InvalidCartItemError):
        await CartService.add_item(
            DummySession(), InMemoryCartStore(), user_id=uuid4(), item_type="song", item_id=TEE.id
        )


async def test_update_without_cart_raises() -> None:
    with pytest.raises(CartNotFoundError):
        await CartService.update_item(InMemoryCartStore(), user_id=uuid4(), line_id="cart_x", quantity=1)


async def test_update_unknown_line_leaves_cart_unchanged(catalogue) -> None:
    store = InMemoryCartStore()
    user_id = uuid4()
    await CartService.add_item(DummySession(), store, user_id=user_id, item_type="merch", item_id=TEE.id)

    cart = await CartService.update_item(store, user_id=user_id, line_id="cart_missing", quantity=5)

    assert cart.items[0].quantity == 1


async def test_promo_survives_later_changes(catalogue) -> None:
    store = InMemoryCartStore()
    user_id = uuid4()
    cart = await CartService.add_item(DummySession(), store, user_id=user_id, item_type="merch", item_id=TEE.id)
    await CartService.apply_promo(store, user_id=user_id, code="first50")

    cart = await CartService.update_item(store, user_id=user_id, line_id=cart.items[0].line_id, quantity=2)

    assert cart.promo_code == "FIRST50"
    assert cart.summary.discount == Decimal("599.00")


async def test_remove_last_item_zeroes_summary(catalogue) -> None:
    store = InMemoryCartStore()
    user_id = uuid4()
    cart = await CartService.add_item(DummySession(), store, user_id=user_id, item_type="merch", item_id=TEE.id)

    cart = await CartService.remove_item(store, user_id=user_id, line_id=cart.items[0].line_id)

    assert cart.is_empty
    assert cart.summary.total == Decimal("0.00")
