from __future__ import annotations

import hashlib
import hmac
import secrets
from uuid import UUID

from redis.asyncio import Redis

RESET_CODE_TTL_SECONDS = 15 * 60
RESET_CODE_MAX_ATTEMPTS = 5
_KEY_PREFIX = "password_reset"


def generate_reset_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def hash_reset_code(*, code: str, pepper: str) -> str:
    digest = hmac.new(pepper.encode("utf-8"), code.strip().encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()


def _code_key(email: str) -> str:
    return f"{_KEY_PREFIX}:{email.strip().lower()}"


def _attempts_key(email: str) -> str:
    return f"{_KEY_PREFIX}:attempts:{email.strip().lower()}"


async def store_reset_code(
    redis_client: Redis,
    *,
    email: str,
    user_id: UUID,
    code: str,
    pepper: str,
) -> None:
    code_hash = hash_reset_code(code=code, pepper=pepper)
    async with redis_client.pipeline(transaction=True) as pipe:
        pipe.set(_code_key(email), f"{user_id}:{code_hash}", ex=RESET_CODE_TTL_SECONDS)
        pipe.delete(_attempts_key(email))
        await pipe.execute()


async def consume_reset_code(
    redis_client: Redis,
    *,
    email: str,
    code: str,
    pepper: str,
) -> UUID | None:
    """Return the user id when the code matches; the code is single use."""
    stored = await redis_client.get(_code_key(email))
    if not stored:
        return None

    user_id_raw, _, stored_hash = str(stored).partition(":")
    candidate_hash = hash_reset_code(code=code, pepper=pepper)
    if not hmac.compare_digest(stored_hash, candidate_hash):
        attempts = await redis_client.incr(_attempts_key(email))
        await redis_client.expire(_attempts_key(email), RESET_CODE_TTL_SECONDS)
        if int(attempts) >= RESET_CODE_MAX_ATTEMPTS:
            await redis_client.delete(_code_key(email), _attempts_key(email))
        return None

    await redis_client.delete(_code_key(email), _attempts_key(email))
    return UUID(user_id_raw)
