"""Celery application configuration"""

from celery import Celery
from kwikqueue.config import settings

# Create Celery app
celery_app = Celery(
    "kwikqueue",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "kwikqueue.jobs.tasks",
    ],
)

# Notification delivery is best-effort: no results, no retries
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=120,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_ignore_result=True,
)
