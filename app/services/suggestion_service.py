"""Community suggestion submission."""

import logging
from typing import Optional
from uuid import uuid4

from app.core.exceptions import NotFoundError, ValidationError
from app.domain.entities import (
    BookMetadataSuggestion,
    BookRef,
    BookSuggestion,
    PrepSuggestion,
    Suggestion,
    UserProfile,
)
from app.domain.repositories import IBookRepository, ISuggestionRepository, IUnitOfWork
from app.domain.services import ISuggestionService
from app.services.text import extract_string_array

logger = logging.getLogger(__name__)


class SuggestionService(ISuggestionService):
    """Creates PENDING suggestions; moderation lives in ``ModerationService``."""

    def __init__(
        self,
        suggestion_repository: ISuggestionRepository,
        book_repository: IBookRepository,
        unit_of_work: IUnitOfWork,
    ):
        self.suggestion_repository = suggestion_repository
        self.book_repository = book_repository
        self.unit_of_work = unit_of_work

    async def suggest_book(
        self,
        user: UserProfile,
        title: str,
        author_name: str,
        notes: Optional[str] = None,
        genre_ideas: Optional[list[str]] = None,
        prep_ideas: Optional[list[str]] = None,
    ) -> Suggestion:
        suggestion = BookSuggestion(
            id=uuid4(),
            submitted_by_id=user.id,
            title=title.strip(),
            author_name=author_name.strip(),
            notes=notes.strip() if notes and notes.strip() else None,
            genre_ideas=extract_string_array(genre_ideas or []),
            prep_ideas=extract_string_array(prep_ideas or []),
        )
        return await self._submit(suggestion)

    async def suggest_metadata(
        self,
        user: UserProfile,
        book_slug: str,
        synopsis: Optional[str] = None,
        genres: Optional[list[str]] = None,
    ) -> Suggestion:
        book = await self._book_ref(book_slug)
        synopsis = synopsis.strip() if synopsis else None
        genres = extract_string_array(genres or [])
        if not synopsis and not genres:
            raise ValidationError("Provide a synopsis or at least one genre.", field="synopsis")
        suggestion = BookMetadataSuggestion(
            id=uuid4(),
            submitted_by_id=user.id,
            book_id=book.id,
            suggested_synopsis=synopsis,
            suggested_genres=genres,
            book=book,
        )
        return await self._submit(suggestion)

    async def suggest_prep(
        self,
        user: UserProfile,
        book_slug: str,
        title: str,
        description: str,
        keyword_hints: Optional[list[str]] = None,
    ) -> Suggestion:
        book = await self._book_ref(book_slug)
        suggestion = PrepSuggestion(
            id=uuid4(),
            submitted_by_id=user.id,
            book_id=book.id,
            title=title.strip(),
            description=description.strip(),
            keyword_hints=extract_string_array(keyword_hints or []),
            book=book,
        )
        return await self._submit(suggestion)

    async def _book_ref(self, slug: str) -> BookRef:
        book = await self.book_repository.get_by_slug(slug)
        if book is None:
            raise NotFoundError("Book", slug, message="Book not found")
        return BookRef(id=book.id, title=book.title, slug=book.slug)

    async def _submit(self, suggestion: Suggestion) -> Suggestion:
        async with self.unit_of_work.transaction():
            created = await self.suggestion_repository.create(suggestion)
        logger.info("Received %s suggestion %s", created.kind.value, created.id)
        return created
