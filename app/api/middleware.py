from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.redis import get_redis
from app.services import rate_limit
from app.services.client_ip import extract_client_ip

logger = structlog.get_logger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]

RATE_LIMITED_MESSAGE = "Too many requests from this IP, please try again later."


async def rate_limit_middleware(request: Request, call_next: CallNext) -> Response:
    settings = get_settings()
    rules = rate_limit.rules_for_path(request.url.path)
    if not settings.rate_limit_enabled or not rules:
        return await call_next(request)

    client_key = extract_client_ip(request, trusted_proxies=settings.rate_limit_trusted_proxies) or "unknown"
    now_ts = int(time.time())
    try:
        redis_client = get_redis()
        for rule in rules:
            decision = await rate_limit.hit(redis_client, rule=rule, client_key=client_key, now_ts=now_ts)
            if not decision.allowed:
                logger.warning("api_rate_limited", scope=rule.scope, client_ip=client_key)
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"message": RATE_LIMITED_MESSAGE, "code": "E_RATE_LIMITED"},
                    headers={
                        "Retry-After": str(decision.retry_after_seconds),
                        "RateLimit-Limit": str(decision.limit),
                        "RateLimit-Remaining": "0",
                    },
                )
    except RedisError as exc:
        # Fail open.
        logger.warning("api_rate_limit_unavailable", error_type=type(exc).__name__)

    return await call_next(request)


async def request_logging_middleware(request: Request, call_next: CallNext) -> Response:
    path = request.url.path
    if not path.startswith("/api"):
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info(
        "api_request",
        method=request.method,
        path=path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


def install_middleware(app: FastAPI) -> None:
    # Registered last runs first: logging wraps rate limiting.
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_logging_middleware)
