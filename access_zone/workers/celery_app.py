from celery import Celery

from access_zone.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "access_zone",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "access_zone.workers.tasks.notifications",
        "access_zone.workers.tasks.points_audit",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)
