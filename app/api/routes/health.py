from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.redis import get_redis
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

Probe = Callable[[], Awaitable[dict[str, Any]]]

WORKER_PING_TIMEOUT_SECONDS = 1.0


class ProbeFailed(Exception):
    """Raised by a probe with a public reason code; the cause stays in logs."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


async def probe_postgres() -> dict[str, Any]:
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))
    return {}


async def probe_redis() -> dict[str, Any]:
    if await get_redis().ping() is not True:
        raise ProbeFailed("redis_unavailable")
    return {}


def _ping_workers() -> dict[str, Any]:
    inspector = celery_app.control.inspect(timeout=WORKER_PING_TIMEOUT_SECONDS)
    if inspector is None:
        raise ProbeFailed("celery_unavailable")
    replies = inspector.ping() or {}
    if not replies:
        raise ProbeFailed("no_workers_responded")
    return {"workers": len(replies)}


async def probe_workers() -> dict[str, Any]:
    return await asyncio.to_thread(_ping_workers)


async def _run_probe(name: str, probe: Probe, fallback_reason: str) -> dict[str, Any]:
    try:
        details = await probe()
    except ProbeFailed as exc:
        return {"status": "failed", "error": exc.reason}
    except Exception as exc:
        logger.warning("health_probe_failed", probe=name, error_type=type(exc).__name__)
        return {"status": "failed", "error": fallback_reason}
    return {"status": "ok", **details}


async def _collect(names: tuple[str, ...]) -> tuple[bool, dict[str, dict[str, Any]]]:
    probes: dict[str, tuple[Probe, str]] = {
        "database": (probe_postgres, "database_unavailable"),
        "redis": (probe_redis, "redis_unavailable"),
        "celery": (probe_workers, "celery_unavailable"),
    }
    results = await asyncio.gather(*(_run_probe(name, *probes[name]) for name in names))
    checks = dict(zip(names, results))
    return all(check["status"] == "ok" for check in checks.values()), checks


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    healthy, checks = await _collect(("database", "redis", "celery"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    # Workers only deliver mail and tickets; requests are served without them.
    ready_now, checks = await _collect(("database", "redis"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready_now else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready_now else "not_ready", "checks": checks},
    )
