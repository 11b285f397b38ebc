from celery import Celery

from app.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "riseup_creators",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.notifications"],
)

celery_app.conf.update(
    task_default_queue="q_notifications",
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=60,
    task_time_limit=90,
    result_expires=3600,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)
