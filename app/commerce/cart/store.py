from __future__ import annotations

import json
from typing import Protocol
from uuid import UUID

from redis.asyncio import Redis

from app.commerce.cart.constants import CART_TTL_SECONDS
from app.commerce.cart.types import Cart
from app.core.redis import get_redis


class CartStore(Protocol):
    async def load(self, user_id: UUID) -> Cart | None: ...

    async def save(self, user_id: UUID, cart: Cart) -> None: ...

    async def clear(self, user_id: UUID) -> None: ...


class RedisCartStore:
    def __init__(self, redis_client: Redis, *, ttl_seconds: int = CART_TTL_SECONDS) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def _key(user_id: UUID) -> str:
        return f"cart:{user_id}"

    async def load(self, user_id: UUID) -> Cart | None:
        raw = await self._redis.get(self._key(user_id))
        if raw is None:
            return None
        return Cart.from_dict(json.loads(raw))

    async def save(self, user_id: UUID, cart: Cart) -> None:
        payload = json.dumps(cart.to_dict(), separators=(",", ":"))
        await self._redis.set(self._key(user_id), payload, ex=self._ttl_seconds)

    async def clear(self, user_id: UUID) -> None:
        await self._redis.delete(self._key(user_id))


def get_cart_store() -> CartStore:
    return RedisCartStore(get_redis())
