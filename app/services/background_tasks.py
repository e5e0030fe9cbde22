"""Async implementations of background score maintenance.

These coroutines run inside Celery workers.  Each opens its own session from
``worker_session_maker`` and its own unit of work, independent of any request.
The Celery wrappers in ``app.infrastructure.tasks.score_tasks`` call them with
``asyncio.run()``.
"""

import logging
from uuid import UUID

from app.infrastructure.database.connection import worker_session_maker
from app.infrastructure.database.repository import (
    FeedbackRepository,
    PrepRepository,
    PromptScoreRepository,
)
from app.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from app.services.prompt_scores import PromptScoreService

logger = logging.getLogger(__name__)


async def rebuild_prompt_score_task(prep_id: str) -> float:
    """Recompute one prep's score from its feedback rows; returns the new score."""
    logger.info("BG-TASK: rebuilding prompt score for prep %s", prep_id)
    try:
        async with worker_session_maker() as session:
            score_service = PromptScoreService(FeedbackRepository(session), PromptScoreRepository(session))
            async with SqlAlchemyUnitOfWork(session).transaction():
                summary = await score_service.rebuild_score(UUID(prep_id))
        logger.info("BG-TASK: prep %s scored %s over %d votes", prep_id, summary.score, summary.total)
        return summary.score
    except Exception as exc:
        logger.error("BG-TASK: score rebuild failed for prep %s: %s", prep_id, exc, exc_info=True)
        raise


async def rebuild_all_prompt_scores_task() -> int:
    """Recompute every prep's score in one transaction; returns the prep count."""
    logger.info("BG-TASK: rebuilding all prompt scores")
    try:
        async with worker_session_maker() as session:
            prep_ids = await PrepRepository(session).list_ids()
            score_service = PromptScoreService(FeedbackRepository(session), PromptScoreRepository(session))
            async with SqlAlchemyUnitOfWork(session).transaction():
                for prep_id in prep_ids:
                    await score_service.rebuild_score(prep_id)
        logger.info("BG-TASK: rebuilt %d prompt scores", len(prep_ids))
        return len(prep_ids)
    except Exception as exc:
        logger.error("BG-TASK: full score rebuild failed: %s", exc, exc_info=True)
        raise
