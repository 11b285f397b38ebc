from __future__ import annotations

from dataclasses import dataclass

from redis.asyncio import Redis

RATE_LIMIT_WINDOW_SECONDS = 15 * 60
API_RATE_LIMIT_MAX_REQUESTS = 100
AUTH_RATE_LIMIT_MAX_REQUESTS = 10


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    scope: str
    max_requests: int
    window_seconds: int = RATE_LIMIT_WINDOW_SECONDS


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


API_RULE = RateLimitRule(scope="api", max_requests=API_RATE_LIMIT_MAX_REQUESTS)
AUTH_RULE = RateLimitRule(scope="auth", max_requests=AUTH_RATE_LIMIT_MAX_REQUESTS)


def rules_for_path(path: str) -> tuple[RateLimitRule, ...]:
    if not path.startswith("/api"):
        return ()
    if path.startswith("/api/auth"):
        return (API_RULE, AUTH_RULE)
    return (API_RULE,)


def _bucket_key(*, rule: RateLimitRule, client_key: str, now_ts: int) -> str:
    window_index = now_ts // rule.window_seconds
    return f"ratelimit:{rule.scope}:{client_key}:{window_index}"


async def hit(
    redis_client: Redis,
    *,
    rule: RateLimitRule,
    client_key: str,
    now_ts: int,
) -> RateLimitDecision:
    """Count one request in the current fixed window and report whether it fits."""
    key = _bucket_key(rule=rule, client_key=client_key, now_ts=now_ts)
    async with redis_client.pipeline(transaction=True) as pipe:
        pipe.incr(key)
        pipe.expire(key, rule.window_seconds, nx=True)
        count, _ = await pipe.execute()

    count = int(count)
    retry_after = rule.window_seconds - (now_ts % rule.window_seconds)
    return RateLimitDecision(
        allowed=count <= rule.max_requests,
        limit=rule.max_requests,
        remaining=max(0, rule.max_requests - count),
        retry_after_seconds=retry_after,
    )
