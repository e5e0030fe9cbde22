"""Prompt feedback scoring.

Every feedback event is an (dimension, AGREE|DISAGREE) pair.  A prep's score
is the agree/disagree balance in [-1, 1], damped towards zero while the prep
has few votes:

    balance          = (agree - disagree) / total
    confidence_boost = min(1, log10(total + 1) / 2)
    score            = balance * (0.7 + confidence_boost * 0.3)

The boost saturates at 99 votes.  ``PromptScore`` rows are a cache of this
computation and are always rebuilt from the full set of feedback rows, never
incremented.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from app.domain.entities import FeedbackDimension, Prep, PromptScore, VoteValue, utcnow
from app.domain.repositories import IFeedbackRepository, IPromptScoreRepository

logger = logging.getLogger(__name__)

FEEDBACK_DIMENSIONS: tuple[FeedbackDimension, ...] = tuple(FeedbackDimension)

BASE_WEIGHT = 0.7
CONFIDENCE_WEIGHT = 0.3


@dataclass
class DimensionTally:
    agree: int = 0
    disagree: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"agree": self.agree, "disagree": self.disagree, "total": self.total}


@dataclass
class ScoreSummary:
    agree: int = 0
    disagree: int = 0
    total: int = 0
    score: float = 0.0
    dimensions: dict[FeedbackDimension, DimensionTally] = field(
        default_factory=lambda: empty_dimension_breakdown()
    )


def calculate_prompt_score(agree: int, disagree: int) -> float:
    total = agree + disagree
    if total == 0:
        return 0.0
    balance = (agree - disagree) / total
    confidence_boost = min(1.0, math.log10(total + 1) / 2)
    return round(balance * (BASE_WEIGHT + confidence_boost * CONFIDENCE_WEIGHT), 4)


def empty_dimension_breakdown() -> dict[FeedbackDimension, DimensionTally]:
    return {dimension: DimensionTally() for dimension in FEEDBACK_DIMENSIONS}


def _as_dimension(value: Any) -> Optional[FeedbackDimension]:
    try:
        return FeedbackDimension(value)
    except ValueError:
        return None


def summarize_aggregates(rows: Iterable[tuple[Any, Any, int]]) -> ScoreSummary:
    """Fold grouped (dimension, value, count) rows into a summary.

    Rows with an unrecognised dimension are skipped.
    """
    dimensions = empty_dimension_breakdown()
    agree = 0
    disagree = 0

    for raw_dimension, value, count in rows:
        dimension = _as_dimension(raw_dimension)
        if dimension is None:
            continue
        target = dimensions[dimension]
        if value == VoteValue.AGREE:
            target.agree += count
            agree += count
        else:
            target.disagree += count
            disagree += count
        target.total = target.agree + target.disagree

    return ScoreSummary(
        agree=agree,
        disagree=disagree,
        total=agree + disagree,
        score=calculate_prompt_score(agree, disagree),
        dimensions=dimensions,
    )


def _lenient_int(value: Any, fallback: int = 0) -> int:
    if value is None:
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(number) or math.isinf(number) or number == 0:
        return fallback
    return int(number)


def summary_from_score_record(record: Optional[PromptScore]) -> Optional[ScoreSummary]:
    """Rebuild a summary from a stored record.

    The tally blob is parsed leniently: missing or malformed dimensions and
    fields read as zero, and a missing per-dimension total falls back to
    agree + disagree.
    """
    if record is None:
        return None

    dimensions = empty_dimension_breakdown()
    tallies = record.dimension_tallies
    if isinstance(tallies, dict):
        for dimension in FEEDBACK_DIMENSIONS:
            entry = tallies.get(dimension.value)
            if not isinstance(entry, dict):
                continue
            agree = _lenient_int(entry.get("agree"))
            disagree = _lenient_int(entry.get("disagree"))
            total = _lenient_int(entry.get("total"), fallback=agree + disagree)
            dimensions[dimension] = DimensionTally(agree=agree, disagree=disagree, total=total)

    return ScoreSummary(
        agree=record.agree_count,
        disagree=record.disagree_count,
        total=record.total_count,
        score=float(record.score or 0),
        dimensions=dimensions,
    )


def summary_from_legacy_votes(agree: int, disagree: int) -> ScoreSummary:
    """Summary for preps that predate dimensioned feedback."""
    return ScoreSummary(
        agree=agree,
        disagree=disagree,
        total=agree + disagree,
        score=calculate_prompt_score(agree, disagree),
    )


def summary_for_prep(prep: Prep) -> ScoreSummary:
    """Stored summary, or one derived from legacy votes when the prep has none yet."""
    summary = summary_from_score_record(prep.score)
    if summary is not None:
        return summary
    return summary_from_legacy_votes(prep.agree_votes, prep.disagree_votes)


def dimensions_to_json(dimensions: dict[FeedbackDimension, DimensionTally]) -> dict[str, dict[str, int]]:
    return {dimension.value: dimensions[dimension].to_dict() for dimension in FEEDBACK_DIMENSIONS}


def to_votes_payload(summary: ScoreSummary) -> dict[str, Any]:
    return {
        "agree": summary.agree,
        "disagree": summary.disagree,
        "total": summary.total,
        "score": summary.score,
        "dimensions": [
            {"dimension": dimension.value, **summary.dimensions[dimension].to_dict()}
            for dimension in FEEDBACK_DIMENSIONS
        ],
    }


class PromptScoreService:
    """Keeps the per-prep ``PromptScore`` cache in line with the feedback rows."""

    def __init__(
        self,
        feedback_repository: IFeedbackRepository,
        score_repository: IPromptScoreRepository,
    ):
        self.feedback_repository = feedback_repository
        self.score_repository = score_repository

    async def recompute_score(
        self, prep_id: UUID, timestamp: Optional[datetime] = None
    ) -> ScoreSummary:
        """Aggregate all feedback for a prep and upsert its score record.

        Does not check that the prep exists.  Must run inside the caller's
        unit of work; persistence errors propagate.
        """
        rows = await self.feedback_repository.aggregate_for_prep(prep_id)
        summary = summarize_aggregates(rows)

        await self.score_repository.upsert(
            PromptScore(
                prep_id=prep_id,
                agree_count=summary.agree,
                disagree_count=summary.disagree,
                total_count=summary.total,
                score=summary.score,
                dimension_tallies=dimensions_to_json(summary.dimensions),
                last_feedback_at=(timestamp or utcnow()) if summary.total > 0 else None,
            )
        )
        logger.debug("Prompt score for prep %s: %s (%d votes)", prep_id, summary.score, summary.total)
        return summary

    async def rebuild_score(self, prep_id: UUID) -> ScoreSummary:
        """Recompute without new feedback, keeping the stored last-feedback time."""
        existing = await self.score_repository.get_by_prep(prep_id)
        return await self.recompute_score(prep_id, existing.last_feedback_at if existing else None)
