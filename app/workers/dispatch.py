from __future__ import annotations

import asyncio
from typing import Any

import structlog
from celery import Task

logger = structlog.get_logger(__name__)

ENQUEUE_TIMEOUT_SECONDS = 3.0


def _is_celery_task(task_obj: object) -> bool:
    return isinstance(task_obj, Task)


async def enqueue_task(task: Any, *, timeout_seconds: float = ENQUEUE_TIMEOUT_SECONDS, **kwargs: Any) -> bool:
    """Fire-and-forget a Celery task; broker problems are logged, never raised."""
    task_name = getattr(task, "name", getattr(task, "__name__", "unknown"))

    def enqueue_call() -> object:
        return task.delay(**kwargs)

    try:
        if _is_celery_task(task):
            await asyncio.wait_for(asyncio.to_thread(enqueue_call), timeout=timeout_seconds)
        else:
            enqueue_call()
        return True
    except asyncio.TimeoutError:
        logger.warning("task_enqueue_timeout", task=task_name, enqueue_timeout_seconds=timeout_seconds)
        return False
    except Exception as exc:
        logger.warning("task_enqueue_failed", task=task_name, error_type=type(exc).__name__)
        return False
