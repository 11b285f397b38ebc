from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from app.commerce.cart.constants import MONEY_QUANTUM, PROMO_CODE_DISCOUNTS, TAX_RATE
from app.commerce.cart.errors import InvalidPromoCodeError
from app.commerce.cart.types import CartLine, CartSummary


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def normalize_promo_code(raw_code: str) -> str:
    return raw_code.strip().upper()


def resolve_promo_discount(raw_code: str) -> tuple[str, Decimal]:
    code = normalize_promo_code(raw_code)
    discount_rate = PROMO_CODE_DISCOUNTS.get(code)
    if discount_rate is None:
        raise InvalidPromoCodeError
    return code, discount_rate


def compute_summary(lines: Iterable[CartLine], *, promo_code: str | None = None) -> CartSummary:
    """Subtotal, then promo discount, then tax on the discounted amount."""
    subtotal = sum((line.price * line.quantity for line in lines), Decimal("0"))
    discount_rate = PROMO_CODE_DISCOUNTS.get(promo_code, Decimal("0")) if promo_code else Decimal("0")

    subtotal = quantize_money(subtotal)
    discount = quantize_money(subtotal * discount_rate)
    tax = quantize_money((subtotal - discount) * TAX_RATE)
    total = quantize_money(subtotal - discount + tax)
    return CartSummary(subtotal=subtotal, discount=discount, tax=tax, total=total)
