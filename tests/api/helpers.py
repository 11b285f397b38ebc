from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from app.commerce.cart.types import Cart
from app.services.auth_tokens import issue_access_token


class DummySession:
    def __init__(self) -> None:
        self.flush_count = 0

    async def flush(self) -> None:
        self.flush_count += 1


class DummySessionBegin:
    def __init__(self, session: DummySession) -> None:
        self._session = session

    async def __aenter__(self) -> DummySession:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class DummySessionLocal:
    def __init__(self) -> None:
        self.session = DummySession()

    def begin(self) -> DummySessionBegin:
        return DummySessionBegin(self.session)


class InMemoryCartStore:
    def __init__(self) -> None:
        self.carts: dict[UUID, Cart] = {}
        self.cleared: list[UUID] = []

    async def load(self, user_id: UUID) -> Cart | None:
        cart = self.carts.get(user_id)
        # Round-trip through the wire format like the Redis store does.
        return Cart.from_dict(cart.to_dict()) if cart is not None else None

    async def save(self, user_id: UUID, cart: Cart) -> None:
        self.carts[user_id] = Cart.from_dict(cart.to_dict())

    async def clear(self, user_id: UUID) -> None:
        self.carts.pop(user_id, None)
        self.cleared.append(user_id)


class TaskRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, task: Any, **kwargs: Any) -> bool:
        self.calls.append((getattr(task, "name", str(task)), kwargs))
        return True

    def names(self) -> list[str]:
        return [name.rsplit(".", maxsplit=1)[-1] for name, _ in self.calls]


def auth_headers(*, role: str = "fan", user_id: UUID | None = None, name: str = "Test User") -> dict[str, str]:
    token = issue_access_token(
        user_id=user_id or uuid4(),
        email=f"{role}@mail.com",
        role=role,
        name=name,
    )
    return {"Authorization": f"Bearer {token}"}
