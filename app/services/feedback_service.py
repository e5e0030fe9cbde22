"""Prep feedback submission and feedback insights."""

import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID, uuid4

from app.core.exceptions import NotFoundError
from app.domain.entities import (
    FeedbackDimension,
    PromptFeedback,
    PromptScoreEntry,
    UserProfile,
    VoteValue,
    utcnow,
)
from app.domain.repositories import (
    IBookRepository,
    IFeedbackRepository,
    IPrepRepository,
    IPromptScoreRepository,
    IUnitOfWork,
)
from app.domain.services import IFeedbackService
from app.services.prompt_scores import PromptScoreService, ScoreSummary

logger = logging.getLogger(__name__)


@dataclass
class FeedbackResult:
    prep_id: UUID
    summary: ScoreSummary


@dataclass
class FeedbackInsights:
    top_prompts: list[PromptScoreEntry] = field(default_factory=list)
    needs_attention: list[PromptScoreEntry] = field(default_factory=list)
    recent_feedback: list[PromptFeedback] = field(default_factory=list)


class FeedbackService(IFeedbackService):

    def __init__(
        self,
        book_repository: IBookRepository,
        prep_repository: IPrepRepository,
        feedback_repository: IFeedbackRepository,
        score_repository: IPromptScoreRepository,
        score_service: PromptScoreService,
        unit_of_work: IUnitOfWork,
    ):
        self.book_repository = book_repository
        self.prep_repository = prep_repository
        self.feedback_repository = feedback_repository
        self.score_repository = score_repository
        self.score_service = score_service
        self.unit_of_work = unit_of_work

    async def submit_feedback(
        self,
        user: UserProfile,
        book_slug: str,
        prep_id: UUID,
        value: VoteValue,
        dimension: FeedbackDimension = FeedbackDimension.CORRECT,
        note: Optional[str] = None,
    ) -> FeedbackResult:
        """Append a feedback event and rebuild the prep's score.

        The legacy single vote for (user, prep) is overwritten; the dimensioned
        event is always appended.  Both writes and the score rebuild commit
        together.
        """
        book = await self.book_repository.get_by_slug(book_slug)
        if book is None:
            raise NotFoundError("Book", book_slug, message="Book not found")
        prep = await self.prep_repository.get_for_book(book.id, prep_id)
        if prep is None:
            raise NotFoundError("Prep", str(prep_id), message="Prep not found")

        created_at = utcnow()
        async with self.unit_of_work.transaction():
            await self.feedback_repository.upsert_vote(prep.id, user.id, value)
            await self.feedback_repository.append(
                PromptFeedback(
                    id=uuid4(),
                    prep_id=prep.id,
                    user_id=user.id,
                    dimension=dimension,
                    value=value,
                    note=note,
                    created_at=created_at,
                )
            )
            summary = await self.score_service.recompute_score(prep.id, created_at)

        logger.info(
            "Recorded %s %s feedback for prep %s", value.value.lower(), dimension.value.lower(), prep.id
        )
        return FeedbackResult(prep_id=prep.id, summary=summary)

    async def feedback_insights(self, limit: int = 6, recent_limit: int = 10) -> FeedbackInsights:
        return FeedbackInsights(
            top_prompts=await self.score_repository.ranked(descending=True, limit=limit),
            needs_attention=await self.score_repository.ranked(descending=False, limit=limit),
            recent_feedback=await self.feedback_repository.recent(limit=recent_limit),
        )
