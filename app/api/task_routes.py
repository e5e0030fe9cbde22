"""Task status API route.

Lets admins poll a background Celery task dispatched by
``POST /api/admin/preps/scores/rebuild``.

  GET /tasks/{task_id}

Possible ``status`` values mirror Celery's task state machine:
PENDING, STARTED, SUCCESS, FAILURE and RETRY.
"""

import logging
from typing import Annotated, Any, Optional

from celery.result import AsyncResult
from fastapi import APIRouter, Depends

from app.api.schemas import TaskStatusResponse
from app.core.dependencies import require_admin
from app.domain.entities import UserProfile
from app.infrastructure.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: str,
    admin: Annotated[UserProfile, Depends(require_admin)],
) -> TaskStatusResponse:
    """Get the current state of a background task.

    ``result`` holds the new score (single prep) or the number of rebuilt
    preps once the task succeeds.
    """
    result = AsyncResult(task_id, app=celery_app)

    value: Optional[Any] = None
    error: Optional[str] = None
    if result.state == "SUCCESS":
        value = result.result
    elif result.state == "FAILURE":
        error = str(result.result)

    logger.debug("Task %s state: %s", task_id, result.state)

    return TaskStatusResponse(task_id=task_id, status=result.state, result=value, error=error)
