"""Celery task wrappers for prompt score maintenance.

Each task is a thin synchronous wrapper around a coroutine in
``app.services.background_tasks``.  Retried up to 3 times, 30 s apart.
"""

import asyncio
import logging

from app.infrastructure.tasks.celery_app import celery_app
from app.services.background_tasks import (
    rebuild_all_prompt_scores_task,
    rebuild_prompt_score_task,
)

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="scores.rebuild_prompt_score", max_retries=3)
def rebuild_prompt_score(self, prep_id: str) -> float:
    """Celery task: recompute a single prep's prompt score."""
    try:
        return asyncio.run(rebuild_prompt_score_task(prep_id))
    except Exception as exc:
        logger.warning(
            "rebuild_prompt_score failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=30)


@celery_app.task(bind=True, name="scores.rebuild_all_prompt_scores", max_retries=3)
def rebuild_all_prompt_scores(self) -> int:
    """Celery task: recompute every prep's prompt score."""
    try:
        return asyncio.run(rebuild_all_prompt_scores_task())
    except Exception as exc:
        logger.warning(
            "rebuild_all_prompt_scores failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=30)
