"""Reading shelf routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from app.api.schemas import (
    ReadingEntryResponse,
    ReadingShelfResponse,
    ReadingStatusRequest,
    ReadingStatusResponse,
)
from app.core.dependencies import get_current_user, get_reading_service
from app.domain.entities import ReadingState, UserProfile
from app.domain.services import IReadingService

router = APIRouter(prefix="/api", tags=["reading"])


@router.get("/reading", response_model=ReadingShelfResponse)
async def list_reading(
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> ReadingShelfResponse:
    """Books the current reader is reading, most recently touched first."""
    entries = await reading_service.list_shelf(current_user)
    return ReadingShelfResponse(entries=[ReadingEntryResponse.from_entity(e) for e in entries])


@router.post("/books/{slug}/reading", response_model=ReadingStatusResponse)
async def start_reading(
    slug: str,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
    body: Optional[ReadingStatusRequest] = None,
) -> ReadingStatusResponse:
    status = body.status if body else ReadingState.READING
    entry = await reading_service.start_reading(current_user, slug, status)
    return ReadingStatusResponse.model_validate(entry)


@router.delete("/books/{slug}/reading", response_model=ReadingStatusResponse)
async def finish_reading(
    slug: str,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> ReadingStatusResponse:
    entry = await reading_service.finish_reading(current_user, slug)
    return ReadingStatusResponse.model_validate(entry)
