"""Celery application; broker and result backend are both Redis.

Workers run as a separate process from the API server, so full score
rebuilds never block request handlers.
"""

from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "bookprepper",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.infrastructure.tasks.score_tasks"],
)

celery_app.conf.update(
    # Serialisation
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # State tracking
    task_track_started=True,
    result_expires=86400,
    # Reliability
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
)
