from __future__ import annotations

from app.services.rate_limit import API_RULE, AUTH_RULE, RateLimitRule, hit, rules_for_path


class FakePipeline:
    def __init__(self, redis_client: FakeRedis) -> None:
        self._redis = redis_client
        self._keys: list[str] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    def incr(self, key: str) -> None:
        self._keys.append(key)

    def expire(self, key: str, seconds: int, nx: bool = False) -> None:
        if not nx or key not in self._redis.ttls:
            self._redis.ttls[key] = seconds

    async def execute(self) -> list:
        key = self._keys[-1]
        self._redis.counts[key] = self._redis.counts.get(key, 0) + 1
        return [self._redis.counts[key], True]


class FakeRedis:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)


def test_rules_for_path() -> None:
    assert rules_for_path("/api/songs") == (API_RULE,)
    assert rules_for_path("/api/auth/login") == (API_RULE, AUTH_RULE)
    assert rules_for_path("/health") == ()
    assert rules_for_path("/docs") == ()


async def test_requests_over_limit_are_rejected() -> None:
    redis_client = FakeRedis()
    rule = RateLimitRule(scope="test", max_requests=2, window_seconds=60)

    decisions = [await hit(redis_client, rule=rule, client_key="10.0.0.1", now_ts=120) for _ in range(3)]

    assert [decision.allowed for decision in decisions] == [True, True, False]
    assert [decision.remaining for decision in decisions] == [1, 0, 0]
    assert redis_client.ttls == {"ratelimit:test:10.0.0.1:2": 60}


async def test_new_window_resets_count_and_reports_retry_after() -> None:
    redis_client = FakeRedis()
    rule = RateLimitRule(scope="test", max_requests=1, window_seconds=60)

    blocked = None
    for _ in range(2):
        blocked = await hit(redis_client, rule=rule, client_key="10.0.0.1", now_ts=150)
    fresh = await hit(redis_client, rule=rule, client_key="10.0.0.1", now_ts=185)

    assert blocked is not None and blocked.allowed is False
    assert blocked.retry_after_seconds == 30
    assert fresh.allowed is True


async def test_clients_are_counted_separately() -> None:
    redis_client = FakeRedis()
    rule = RateLimitRule(scope="test", max_requests=1, window_seconds=60)

    first = await hit(redis_client, rule=rule, client_key="10.0.0.1", now_ts=0)
    other = await hit(redis_client, rule=rule, client_key="10.0.0.2", now_ts=0)

    assert first.allowed and other.allowed
