from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from app.commerce.cart.constants import MONEY_QUANTUM


@dataclass(slots=True)
class CartLine:
    line_id: str
    item_type: str
    item_id: str
    name: str
    price: Decimal
    quantity: int
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.line_id,
            "type": self.item_type,
            "id": self.item_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CartLine:
        return cls(
            line_id=str(raw["_id"]),
            item_type=str(raw["type"]),
            item_id=str(raw["id"]),
            name=str(raw["name"]),
            price=Decimal(str(raw["price"])),
            quantity=int(raw["quantity"]),
            image=raw.get("image"),
        )


@dataclass(frozen=True, slots=True)
class CartSummary:
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")

    def to_dict(self) -> dict[str, str]:
        return {
            "subtotal": str(self.subtotal.quantize(MONEY_QUANTUM)),
            "discount": str(self.discount.quantize(MONEY_QUANTUM)),
            "tax": str(self.tax.quantize(MONEY_QUANTUM)),
            "total": str(self.total.quantize(MONEY_QUANTUM)),
        }


@dataclass(slots=True)
class Cart:
    items: list[CartLine] = field(default_factory=list)
    summary: CartSummary = field(default_factory=CartSummary)
    promo_code: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_line(self, line_id: str) -> CartLine | None:
        for line in self.items:
            if line.line_id == line_id:
                return line
        return None

    def find_item(self, *, item_type: str, item_id: str) -> CartLine | None:
        for line in self.items:
            if line.item_type == item_type and line.item_id == item_id:
                return line
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [line.to_dict() for line in self.items],
            "summary": self.summary.to_dict(),
            "promoCode": self.promo_code,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Cart:
        summary_raw = raw.get("summary") or {}
        return cls(
            items=[CartLine.from_dict(item) for item in raw.get("items", [])],
            summary=CartSummary(
                subtotal=Decimal(str(summary_raw.get("subtotal", "0"))),
                discount=Decimal(str(summary_raw.get("discount", "0"))),
                tax=Decimal(str(summary_raw.get("tax", "0"))),
                total=Decimal(str(summary_raw.get("total", "0"))),
            ),
            promo_code=raw.get("promoCode"),
        )
