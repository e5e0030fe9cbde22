"""Reader suggestion routes for new books and book metadata."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.schemas import (
    BookSuggestionRequest,
    MetadataSuggestionRequest,
    SuggestionSubmittedResponse,
)
from app.core.dependencies import get_current_user, get_suggestion_service
from app.domain.entities import UserProfile
from app.domain.services import ISuggestionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["suggestions"])


@router.post(
    "/suggestions/books",
    response_model=SuggestionSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def suggest_book(
    body: BookSuggestionRequest,
    suggestion_service: Annotated[ISuggestionService, Depends(get_suggestion_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> SuggestionSubmittedResponse:
    suggestion = await suggestion_service.suggest_book(
        user=current_user,
        title=body.title,
        author_name=body.author_name,
        notes=body.notes,
        genre_ideas=body.genre_ideas,
        prep_ideas=body.prep_ideas,
    )
    return SuggestionSubmittedResponse(
        message="Book suggestion received.",
        suggestion_id=suggestion.id,
        status=suggestion.status,
    )


@router.post(
    "/books/{slug}/metadata/suggest",
    response_model=SuggestionSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def suggest_metadata(
    slug: str,
    body: MetadataSuggestionRequest,
    suggestion_service: Annotated[ISuggestionService, Depends(get_suggestion_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> SuggestionSubmittedResponse:
    suggestion = await suggestion_service.suggest_metadata(
        user=current_user,
        book_slug=slug,
        synopsis=body.synopsis,
        genres=body.genres,
    )
    return SuggestionSubmittedResponse(
        message="Metadata suggestion received.",
        suggestion_id=suggestion.id,
        status=suggestion.status,
    )
