from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.db.models.orders import Order, OrderItem


@dataclass(slots=True)
class CheckoutResult:
    order: Order
    items: list[OrderItem]
    gateway_order: dict[str, Any]


@dataclass(slots=True)
class PaymentVerificationResult:
    order: Order
    items: list[OrderItem] = field(default_factory=list)
    idempotent_replay: bool = False

    @property
    def has_tickets(self) -> bool:
        return any(item.event_id is not None for item in self.items)
