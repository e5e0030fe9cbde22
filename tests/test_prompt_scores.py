"""Tests for prompt score calculation and summary parsing."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.domain.entities import FeedbackDimension, Prep, PromptScore, VoteValue
from app.services.prompt_scores import (
    FEEDBACK_DIMENSIONS,
    PromptScoreService,
    calculate_prompt_score,
    summarize_aggregates,
    summary_for_prep,
    summary_from_score_record,
    to_votes_payload,
)


class TestCalculatePromptScore:

    def test_no_votes_scores_zero(self):
        assert calculate_prompt_score(0, 0) == 0.0

    def test_single_agree_is_damped(self):
        assert calculate_prompt_score(1, 0) == pytest.approx(0.7452, abs=1e-4)

    def test_single_disagree_is_symmetric(self):
        assert calculate_prompt_score(0, 1) == pytest.approx(-0.7452, abs=1e-4)

    @pytest.mark.parametrize("n", [1, 2, 7, 20, 150])
    def test_sign_follows_majority(self, n):
        assert calculate_prompt_score(n, 0) > 0
        assert calculate_prompt_score(0, n) < 0
        assert calculate_prompt_score(n, 0) == -calculate_prompt_score(0, n)

    @pytest.mark.parametrize("n", [0, 1, 5, 13, 200])
    def test_even_split_is_zero(self, n):
        assert calculate_prompt_score(n, n) == 0.0

    def test_larger_unanimous_sample_scores_higher(self):
        assert calculate_prompt_score(20, 0) > calculate_prompt_score(2, 0)
        assert calculate_prompt_score(2, 0) > calculate_prompt_score(1, 0)

    def test_larger_unanimous_disagreement_scores_lower(self):
        assert calculate_prompt_score(0, 20) < calculate_prompt_score(0, 2)

    def test_confidence_saturates_at_99_votes(self):
        assert calculate_prompt_score(99, 0) == pytest.approx(1.0)
        assert calculate_prompt_score(500, 0) == pytest.approx(1.0)

    def test_score_stays_in_bounds(self):
        for agree in range(0, 30, 3):
            for disagree in range(0, 30, 4):
                assert -1.0 <= calculate_prompt_score(agree, disagree) <= 1.0

    def test_more_agreement_never_lowers_score(self):
        assert calculate_prompt_score(10, 2) > calculate_prompt_score(6, 2)


class TestSummarizeAggregates:

    def test_folds_rows_per_dimension(self):
        summary = summarize_aggregates(
            [
                ("CORRECT", "AGREE", 3),
                ("CORRECT", "DISAGREE", 1),
                ("FUN", "AGREE", 2),
            ]
        )
        assert (summary.agree, summary.disagree, summary.total) == (5, 1, 6)
        assert summary.dimensions[FeedbackDimension.CORRECT].total == 4
        assert summary.dimensions[FeedbackDimension.FUN].agree == 2
        assert summary.dimensions[FeedbackDimension.SPARSE].total == 0
        assert summary.score == calculate_prompt_score(5, 1)

    def test_agree_only_rows(self):
        summary = summarize_aggregates(
            [(FeedbackDimension.CORRECT, VoteValue.AGREE, 5), (FeedbackDimension.FUN, VoteValue.AGREE, 3)]
        )
        assert (summary.agree, summary.disagree, summary.total) == (8, 0, 8)
        assert summary.score > 0

    def test_unknown_dimension_is_skipped(self):
        summary = summarize_aggregates([("LEGACY", "AGREE", 4), ("USEFUL", "DISAGREE", 1)])
        assert summary.total == 1
        assert summary.disagree == 1

    def test_empty_rows_give_full_zero_breakdown(self):
        summary = summarize_aggregates([])
        assert summary.total == 0
        assert list(summary.dimensions) == list(FEEDBACK_DIMENSIONS)


class TestSummaryFromScoreRecord:

    def test_none_record(self):
        assert summary_from_score_record(None) is None

    def test_malformed_tallies_read_as_zero(self):
        record = PromptScore(
            prep_id=uuid4(),
            agree_count=3,
            disagree_count=1,
            total_count=4,
            score=0.4,
            dimension_tallies={
                "CORRECT": {"agree": "3", "disagree": None},
                "FUN": "not-a-dict",
                "USEFUL": {"agree": float("nan"), "disagree": 1, "total": 0},
            },
        )
        summary = summary_from_score_record(record)
        assert summary.dimensions[FeedbackDimension.CORRECT].agree == 3
        assert summary.dimensions[FeedbackDimension.CORRECT].total == 3
        assert summary.dimensions[FeedbackDimension.FUN].total == 0
        assert summary.dimensions[FeedbackDimension.USEFUL].agree == 0
        assert summary.dimensions[FeedbackDimension.USEFUL].total == 1
        assert summary.total == 4

    def test_null_tallies_give_zero_dimensions(self):
        record = PromptScore(prep_id=uuid4(), agree_count=1, total_count=1, score=0.7452, dimension_tallies=None)
        payload = to_votes_payload(summary_from_score_record(record))
        assert (payload["agree"], payload["total"], payload["score"]) == (1, 1, 0.7452)
        assert len(payload["dimensions"]) == 10
        assert all(d["total"] == 0 for d in payload["dimensions"])

    def test_single_correct_agree_end_to_end(self):
        summary = summarize_aggregates([("CORRECT", "AGREE", 1)])
        record = PromptScore(
            prep_id=uuid4(),
            agree_count=summary.agree,
            disagree_count=summary.disagree,
            total_count=summary.total,
            score=summary.score,
            dimension_tallies={d.value: t.to_dict() for d, t in summary.dimensions.items()},
        )
        restored = summary_from_score_record(record)
        assert restored.score == pytest.approx(0.7452, abs=1e-4)
        assert restored.dimensions[FeedbackDimension.CORRECT].to_dict() == {"agree": 1, "disagree": 0, "total": 1}
        assert sum(t.total for t in restored.dimensions.values()) == 1

    def test_prep_without_record_falls_back_to_legacy_votes(self):
        prep = Prep(id=uuid4(), book_id=uuid4(), heading="h", summary="s", agree_votes=1)
        summary = summary_for_prep(prep)
        assert summary.total == 1
        assert summary.score == pytest.approx(0.7452, abs=1e-4)

    def test_votes_payload_lists_dimensions_in_canonical_order(self):
        payload = to_votes_payload(summarize_aggregates([("BORING", "AGREE", 1)]))
        assert [d["dimension"] for d in payload["dimensions"]] == [d.value for d in FEEDBACK_DIMENSIONS]
        assert payload["dimensions"][3] == {"dimension": "BORING", "agree": 1, "disagree": 0, "total": 1}


class TestPromptScoreService:

    def setup_method(self):
        self.feedback_repo = AsyncMock()
        self.score_repo = AsyncMock()
        self.service = PromptScoreService(self.feedback_repo, self.score_repo)

    @pytest.mark.asyncio
    async def test_recompute_upserts_full_record(self):
        prep_id = uuid4()
        stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
        self.feedback_repo.aggregate_for_prep.return_value = [
            (FeedbackDimension.CORRECT, VoteValue.AGREE, 2),
        ]

        summary = await self.service.recompute_score(prep_id, stamp)

        assert summary.agree == 2
        record = self.score_repo.upsert.await_args.args[0]
        assert record.prep_id == prep_id
        assert record.total_count == 2
        assert record.last_feedback_at == stamp
        assert record.dimension_tallies["CORRECT"] == {"agree": 2, "disagree": 0, "total": 2}

    @pytest.mark.asyncio
    async def test_recompute_without_feedback_clears_last_feedback(self):
        self.feedback_repo.aggregate_for_prep.return_value = []
        await self.service.recompute_score(uuid4())
        record = self.score_repo.upsert.await_args.args[0]
        assert record.score == 0.0
        assert record.last_feedback_at is None

    @pytest.mark.asyncio
    async def test_rebuild_keeps_last_feedback_time(self):
        stamp = datetime(2023, 2, 2, tzinfo=timezone.utc)
        prep_id = uuid4()
        self.score_repo.get_by_prep.return_value = PromptScore(prep_id=prep_id, last_feedback_at=stamp)
        self.feedback_repo.aggregate_for_prep.return_value = [("FUN", "DISAGREE", 1)]

        await self.service.rebuild_score(prep_id)

        assert self.score_repo.upsert.await_args.args[0].last_feedback_at == stamp
