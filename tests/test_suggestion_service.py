"""Tests for reader suggestion submission."""

from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.domain.entities import SuggestionKind, SuggestionStatus
from app.services.suggestion_service import SuggestionService


class TestSuggestionService:

    @pytest.fixture(autouse=True)
    def _service(self, unit_of_work, sample_book):
        self.book = sample_book
        self.suggestion_repo = AsyncMock()
        self.suggestion_repo.create.side_effect = lambda suggestion: suggestion
        self.book_repo = AsyncMock()
        self.book_repo.get_by_slug.return_value = sample_book
        self.uow = unit_of_work
        self.service = SuggestionService(
            suggestion_repository=self.suggestion_repo,
            book_repository=self.book_repo,
            unit_of_work=self.uow,
        )

    @pytest.mark.asyncio
    async def test_book_suggestion_is_pending_and_trimmed(self, reader):
        suggestion = await self.service.suggest_book(
            reader, "  Piranesi ", "Susanna Clarke", notes="   ", genre_ideas=["Fantasy", " ", "Mystery "]
        )

        assert suggestion.kind is SuggestionKind.BOOK
        assert suggestion.status is SuggestionStatus.PENDING
        assert suggestion.title == "Piranesi"
        assert suggestion.notes is None
        assert suggestion.genre_ideas == ["Fantasy", "Mystery"]
        assert suggestion.submitted_by_id == reader.id
        assert self.uow.commits == 1

    @pytest.mark.asyncio
    async def test_metadata_needs_synopsis_or_genre(self, reader):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.suggest_metadata(reader, self.book.slug, synopsis="  ", genres=[" "])
        assert exc_info.value.field == "synopsis"
        self.suggestion_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_metadata_targets_book(self, reader):
        suggestion = await self.service.suggest_metadata(reader, self.book.slug, genres=["anarchism"])

        assert suggestion.kind is SuggestionKind.METADATA
        assert suggestion.book_id == self.book.id
        assert suggestion.book.slug == self.book.slug

    @pytest.mark.asyncio
    async def test_prep_for_unknown_book(self, reader):
        self.book_repo.get_by_slug.return_value = None
        with pytest.raises(NotFoundError):
            await self.service.suggest_prep(reader, "missing", "Heading", "A long enough description")

    @pytest.mark.asyncio
    async def test_prep_suggestion(self, reader):
        suggestion = await self.service.suggest_prep(
            reader, self.book.slug, "Dual worlds", "Two planets, two societies.", keyword_hints=["setting"]
        )
        assert suggestion.kind is SuggestionKind.PREP
        assert suggestion.keyword_hints == ["setting"]
