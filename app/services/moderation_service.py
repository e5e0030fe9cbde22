"""Suggestion moderation workflow.

All three suggestion kinds share one state machine:

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED

Approval applies the suggested catalog change and flips the status inside a
single transaction.  The status write only matches rows that are still
PENDING, so when two moderators race, exactly one wins and the loser's
catalog change is rolled back with a ``ConflictError``.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from uuid import UUID, uuid4

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError
from app.domain.entities import (
    Book,
    BookMetadataSuggestion,
    BookRef,
    BookSuggestion,
    Prep,
    PrepSuggestion,
    Suggestion,
    SuggestionKind,
    SuggestionStatus,
    utcnow,
)
from app.domain.repositories import (
    IBookRepository,
    ICacheBackend,
    IPrepRepository,
    ISuggestionRepository,
    IUnitOfWork,
)
from app.domain.services import IModerationService
from app.services.catalog_mutations import CatalogMutations
from app.services.catalog_service import invalidate_catalog_stats
from app.services.text import truncate_synopsis

logger = logging.getLogger(__name__)


@dataclass
class ModerationResult:
    kind: SuggestionKind
    suggestion_id: UUID
    status: SuggestionStatus
    book: Optional[BookRef] = None
    prep: Optional[Prep] = None


Applier = Callable[[Suggestion, ModerationResult], Awaitable[None]]


class ModerationService(IModerationService):

    def __init__(
        self,
        suggestion_repository: ISuggestionRepository,
        book_repository: IBookRepository,
        prep_repository: IPrepRepository,
        mutations: CatalogMutations,
        unit_of_work: IUnitOfWork,
        cache: ICacheBackend,
    ):
        self.suggestion_repository = suggestion_repository
        self.book_repository = book_repository
        self.prep_repository = prep_repository
        self.mutations = mutations
        self.unit_of_work = unit_of_work
        self.cache = cache
        self._appliers: dict[SuggestionKind, Applier] = {
            SuggestionKind.BOOK: self._apply_book,
            SuggestionKind.METADATA: self._apply_metadata,
            SuggestionKind.PREP: self._apply_prep,
        }

    async def list_pending(self, kind: SuggestionKind) -> list[Suggestion]:
        return await self.suggestion_repository.list_pending(kind)

    async def approve_suggestion(
        self, kind: SuggestionKind, suggestion_id: UUID, note: Optional[str] = None
    ) -> ModerationResult:
        return await self._resolve(kind, suggestion_id, SuggestionStatus.APPROVED, note, self._appliers[kind])

    async def reject_suggestion(
        self, kind: SuggestionKind, suggestion_id: UUID, note: Optional[str] = None
    ) -> ModerationResult:
        return await self._resolve(kind, suggestion_id, SuggestionStatus.REJECTED, note, None)

    async def _resolve(
        self,
        kind: SuggestionKind,
        suggestion_id: UUID,
        status: SuggestionStatus,
        note: Optional[str],
        apply: Optional[Applier],
    ) -> ModerationResult:
        suggestion = await self.suggestion_repository.get(kind, suggestion_id)
        if suggestion is None:
            raise NotFoundError("Suggestion", str(suggestion_id), message="Suggestion not found.")
        if suggestion.status is not SuggestionStatus.PENDING:
            raise ConflictError(context={"suggestion_id": str(suggestion_id), "status": suggestion.status.value})

        result = ModerationResult(kind=kind, suggestion_id=suggestion_id, status=status)
        async with self.unit_of_work.transaction():
            if apply is not None:
                await apply(suggestion, result)
            moved = await self.suggestion_repository.transition(
                kind, suggestion_id, status, note, utcnow()
            )
            if not moved:
                raise ConflictError(context={"suggestion_id": str(suggestion_id)})

        await invalidate_catalog_stats(self.cache)
        logger.info("%s suggestion %s %s", kind.value, suggestion_id, status.value.lower())
        return result

    async def _load_book(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if book is None:
            raise NotFoundError("Book", str(book_id), message="Book not found")
        return book

    async def _apply_metadata(self, suggestion: BookMetadataSuggestion, result: ModerationResult) -> None:
        book = await self._load_book(suggestion.book_id)
        if suggestion.suggested_synopsis:
            book.synopsis = truncate_synopsis(suggestion.suggested_synopsis, settings.synopsis_max_length)
            await self.book_repository.update(book)
        if suggestion.suggested_genres:
            genres = await self.mutations.resolve_existing_genres(suggestion.suggested_genres)
            await self.mutations.sync_book_genres(book.id, [genre.id for genre in genres])
        result.book = BookRef(id=book.id, title=book.title, slug=book.slug)

    async def _apply_prep(self, suggestion: PrepSuggestion, result: ModerationResult) -> None:
        book = await self._load_book(suggestion.book_id)
        keywords = await self.mutations.upsert_keywords(suggestion.keyword_hints)
        result.prep = await self.prep_repository.create(
            Prep(id=uuid4(), book_id=book.id, heading=suggestion.title, summary=suggestion.description),
            [keyword.id for keyword in keywords],
        )
        result.book = BookRef(id=book.id, title=book.title, slug=book.slug)

    async def _apply_book(self, suggestion: BookSuggestion, result: ModerationResult) -> None:
        author_id = await self.mutations.resolve_author_id(author_name=suggestion.author_name)
        slug = await self.mutations.ensure_unique_slug("book", suggestion.title)
        book = await self.book_repository.create(
            Book(
                id=uuid4(),
                title=suggestion.title,
                slug=slug,
                author_id=author_id,
                synopsis=truncate_synopsis(suggestion.notes, settings.synopsis_max_length),
            )
        )
        if suggestion.genre_ideas:
            genres = await self.mutations.ensure_genres_from_names(suggestion.genre_ideas)
            await self.mutations.sync_book_genres(book.id, [genre.id for genre in genres])
        result.book = BookRef(id=book.id, title=book.title, slug=book.slug)
