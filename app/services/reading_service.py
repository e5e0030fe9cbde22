"""Per-reader "currently reading" shelf."""

import logging
from uuid import UUID

from app.core.exceptions import NotFoundError
from app.domain.entities import ReadingState, ReadingStatus, UserProfile
from app.domain.repositories import IBookRepository, IReadingStatusRepository, IUnitOfWork
from app.domain.services import IReadingService

logger = logging.getLogger(__name__)


class ReadingService(IReadingService):

    def __init__(
        self,
        book_repository: IBookRepository,
        reading_repository: IReadingStatusRepository,
        unit_of_work: IUnitOfWork,
    ):
        self.book_repository = book_repository
        self.reading_repository = reading_repository
        self.unit_of_work = unit_of_work

    async def list_shelf(self, user: UserProfile) -> list[ReadingStatus]:
        return await self.reading_repository.list_for_user(user.id, ReadingState.READING)

    async def start_reading(
        self, user: UserProfile, slug: str, status: ReadingState = ReadingState.READING
    ) -> ReadingStatus:
        book_id = await self._book_id(slug)
        async with self.unit_of_work.transaction():
            entry = await self.reading_repository.upsert(user.id, book_id, status)
        logger.info("Reader %s marked %s as %s", user.id, slug, entry.status.value)
        return entry

    async def finish_reading(self, user: UserProfile, slug: str) -> ReadingStatus:
        """Move the book off the shelf by marking it DONE.

        Raises NotFoundError when the book is not currently being read.
        """
        book_id = await self._book_id(slug)
        async with self.unit_of_work.transaction():
            existing = await self.reading_repository.get(user.id, book_id)
            if existing is None or existing.status is not ReadingState.READING:
                raise NotFoundError("Reading entry", slug, message="Book is not on your reading shelf.")
            entry = await self.reading_repository.upsert(user.id, book_id, ReadingState.DONE)
        logger.info("Reader %s finished %s", user.id, slug)
        return entry

    async def _book_id(self, slug: str) -> UUID:
        book = await self.book_repository.get_by_slug(slug)
        if book is None:
            raise NotFoundError("Book", slug, message="Book not found")
        return book.id
