"""Prep routes: keywords, reader feedback, prep suggestions and insights."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.schemas import (
    BookRefResponse,
    FeedbackInsightsResponse,
    FeedbackRequest,
    FeedbackResponse,
    KeywordResponse,
    PrepRefResponse,
    PrepSuggestionRequest,
    RecentFeedbackResponse,
    ScoreEntryResponse,
    SuggestionSubmittedResponse,
    VotesPayload,
)
from app.core.dependencies import (
    get_catalog_service,
    get_current_user,
    get_feedback_service,
    get_suggestion_service,
    require_curator,
)
from app.domain.entities import PromptScoreEntry, UserProfile
from app.domain.services import ICatalogService, IFeedbackService, ISuggestionService
from app.services.prompt_scores import summary_from_score_record

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["preps"])


def _score_entry(entry: PromptScoreEntry) -> ScoreEntryResponse:
    return ScoreEntryResponse(
        prep_id=entry.score.prep_id,
        heading=entry.heading,
        summary=entry.summary,
        book=BookRefResponse.model_validate(entry.book),
        votes=VotesPayload.from_summary(summary_from_score_record(entry.score)),
    )


@router.get("/preps/keywords", response_model=list[KeywordResponse])
async def list_keywords(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> list[KeywordResponse]:
    keywords = await catalog_service.list_keywords()
    return [KeywordResponse.model_validate(k) for k in keywords]


@router.post("/books/{slug}/preps/{prep_id}/vote", response_model=FeedbackResponse)
async def submit_feedback(
    slug: str,
    prep_id: UUID,
    body: FeedbackRequest,
    feedback_service: Annotated[IFeedbackService, Depends(get_feedback_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> FeedbackResponse:
    """Record agree/disagree feedback on one dimension of a prep.

    Returns the prep's refreshed vote totals and score.
    """
    result = await feedback_service.submit_feedback(
        user=current_user,
        book_slug=slug,
        prep_id=prep_id,
        value=body.value,
        dimension=body.dimension,
        note=body.note,
    )
    return FeedbackResponse(prep_id=result.prep_id, votes=VotesPayload.from_summary(result.summary))


@router.post(
    "/books/{slug}/preps/suggest",
    response_model=SuggestionSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def suggest_prep(
    slug: str,
    body: PrepSuggestionRequest,
    suggestion_service: Annotated[ISuggestionService, Depends(get_suggestion_service)],
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> SuggestionSubmittedResponse:
    suggestion = await suggestion_service.suggest_prep(
        user=current_user,
        book_slug=slug,
        title=body.title,
        description=body.description,
        keyword_hints=body.keyword_hints,
    )
    return SuggestionSubmittedResponse(
        message="Prep suggestion received.",
        suggestion_id=suggestion.id,
        status=suggestion.status,
    )


@router.get("/preps/feedback/insights", response_model=FeedbackInsightsResponse)
async def feedback_insights(
    feedback_service: Annotated[IFeedbackService, Depends(get_feedback_service)],
    current_user: Annotated[UserProfile, Depends(require_curator)],
    limit: Annotated[int, Query(ge=1, le=50)] = 6,
) -> FeedbackInsightsResponse:
    """Best and worst scoring prompts plus the latest feedback events."""
    insights = await feedback_service.feedback_insights(limit=limit)
    return FeedbackInsightsResponse(
        top_prompts=[_score_entry(e) for e in insights.top_prompts],
        needs_attention=[_score_entry(e) for e in insights.needs_attention],
        recent_feedback=[
            RecentFeedbackResponse(
                id=f.id,
                dimension=f.dimension,
                value=f.value,
                note=f.note,
                created_at=f.created_at,
                prep=PrepRefResponse(id=f.prep_id, heading=f.prep_heading),
                book=BookRefResponse.model_validate(f.book) if f.book else None,
            )
            for f in insights.recent_feedback
        ],
    )
