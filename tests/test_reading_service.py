"""Tests for the reading shelf service."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError
from app.domain.entities import ReadingState, ReadingStatus
from app.services.reading_service import ReadingService


class TestReadingService:

    @pytest.fixture(autouse=True)
    def _service(self, unit_of_work, sample_book):
        self.book = sample_book
        self.book_repo = AsyncMock()
        self.book_repo.get_by_slug.return_value = sample_book
        self.reading_repo = AsyncMock()
        self.reading_repo.upsert.side_effect = lambda user_id, book_id, status: ReadingStatus(
            id=uuid4(), user_id=user_id, book_id=book_id, status=status
        )
        self.uow = unit_of_work
        self.service = ReadingService(
            book_repository=self.book_repo,
            reading_repository=self.reading_repo,
            unit_of_work=self.uow,
        )

    @pytest.mark.asyncio
    async def test_start_reading_defaults_to_reading(self, reader):
        entry = await self.service.start_reading(reader, self.book.slug)

        assert entry.status is ReadingState.READING
        self.reading_repo.upsert.assert_awaited_once_with(reader.id, self.book.id, ReadingState.READING)
        assert self.uow.commits == 1

    @pytest.mark.asyncio
    async def test_start_reading_accepts_done(self, reader):
        entry = await self.service.start_reading(reader, self.book.slug, ReadingState.DONE)
        assert entry.status is ReadingState.DONE

    @pytest.mark.asyncio
    async def test_unknown_book_is_not_found(self, reader):
        self.book_repo.get_by_slug.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.start_reading(reader, "missing")
        assert exc_info.value.message == "Book not found"
        self.reading_repo.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shelf_lists_only_reading_entries(self, reader):
        entries = [ReadingStatus(id=uuid4(), user_id=reader.id, book_id=self.book.id, book=self.book)]
        self.reading_repo.list_for_user.return_value = entries

        shelf = await self.service.list_shelf(reader)

        assert shelf == entries
        self.reading_repo.list_for_user.assert_awaited_once_with(reader.id, ReadingState.READING)

    @pytest.mark.asyncio
    async def test_finish_marks_entry_done(self, reader):
        self.reading_repo.get.return_value = ReadingStatus(id=uuid4(), user_id=reader.id, book_id=self.book.id)

        entry = await self.service.finish_reading(reader, self.book.slug)

        assert entry.status is ReadingState.DONE
        self.reading_repo.upsert.assert_awaited_once_with(reader.id, self.book.id, ReadingState.DONE)

    @pytest.mark.asyncio
    async def test_finish_without_entry_is_not_found(self, reader):
        self.reading_repo.get.return_value = None

        with pytest.raises(NotFoundError):
            await self.service.finish_reading(reader, self.book.slug)
        self.reading_repo.upsert.assert_not_awaited()
        assert self.uow.rollbacks == 1

    @pytest.mark.asyncio
    async def test_finish_already_done_is_not_found(self, reader):
        self.reading_repo.get.return_value = ReadingStatus(
            id=uuid4(), user_id=reader.id, book_id=self.book.id, status=ReadingState.DONE
        )

        with pytest.raises(NotFoundError):
            await self.service.finish_reading(reader, self.book.slug)
