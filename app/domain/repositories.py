"""Repository interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from app.domain.entities import (
    Author,
    Book,
    BookFilters,
    CatalogStats,
    FeedbackDimension,
    Genre,
    Keyword,
    Prep,
    PrepVote,
    PromptFeedback,
    PromptScore,
    PromptScoreEntry,
    ReadingState,
    ReadingStatus,
    Suggestion,
    SuggestionKind,
    SuggestionStatus,
    UserProfile,
    UserRole,
    VoteValue,
)


class IUnitOfWork(ABC):
    """Transaction boundary shared by every repository of a request."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Commit on clean exit, roll back and re-raise on error."""


class IUserProfileRepository(ABC):

    @abstractmethod
    async def upsert_by_subject(
        self, subject: str, email: str, display_name: str, role: Optional[UserRole] = None
    ) -> UserProfile:
        """Create or refresh a profile.

        ``display_name`` is only used on creation so user edits survive;
        ``role`` is only written when given.
        """

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        pass

    @abstractmethod
    async def update_display_name(self, user_id: UUID, display_name: str) -> UserProfile:
        pass


class IAuthorRepository(ABC):

    @abstractmethod
    async def get_by_id(self, author_id: UUID) -> Optional[Author]:
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Author]:
        pass

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        pass

    @abstractmethod
    async def create(self, author: Author) -> Author:
        pass

    @abstractmethod
    async def list_all(self) -> list[Author]:
        """Authors ordered by name, with ``book_count`` populated."""


class IGenreRepository(ABC):

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Genre]:
        pass

    @abstractmethod
    async def get_by_slugs(self, slugs: list[str]) -> list[Genre]:
        pass

    @abstractmethod
    async def get_by_ids(self, genre_ids: list[UUID]) -> list[Genre]:
        pass

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        pass

    @abstractmethod
    async def create(self, genre: Genre) -> Genre:
        pass

    @abstractmethod
    async def list_all(self) -> list[Genre]:
        pass


class IKeywordRepository(ABC):

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Keyword]:
        pass

    @abstractmethod
    async def create(self, keyword: Keyword) -> Keyword:
        pass

    @abstractmethod
    async def rename(self, keyword_id: UUID, name: str) -> Keyword:
        pass

    @abstractmethod
    async def list_all(self) -> list[Keyword]:
        pass


class IBookRepository(ABC):

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Book]:
        """Return the book with author, genres and preps (ordered by heading)."""

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        pass

    @abstractmethod
    async def create(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def update(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def search(
        self, filters: BookFilters, skip: int = 0, limit: int = 20
    ) -> tuple[list[Book], int]:
        """Return one page of matching books ordered by title, plus the total."""

    @abstractmethod
    async def set_genres(self, book_id: UUID, genre_ids: list[UUID]) -> None:
        """Replace the whole genre association set of a book."""

    @abstractmethod
    async def stats(self) -> CatalogStats:
        pass


class IPrepRepository(ABC):

    @abstractmethod
    async def get_for_book(self, book_id: UUID, prep_id: UUID) -> Optional[Prep]:
        pass

    @abstractmethod
    async def list_ids(self) -> list[UUID]:
        pass

    @abstractmethod
    async def create(self, prep: Prep, keyword_ids: list[UUID]) -> Prep:
        pass

    @abstractmethod
    async def update(self, prep: Prep, keyword_ids: list[UUID]) -> Prep:
        pass

    @abstractmethod
    async def delete(self, prep_id: UUID) -> bool:
        pass


class IFeedbackRepository(ABC):

    @abstractmethod
    async def upsert_vote(self, prep_id: UUID, user_id: UUID, value: VoteValue) -> PrepVote:
        pass

    @abstractmethod
    async def append(self, feedback: PromptFeedback) -> PromptFeedback:
        pass

    @abstractmethod
    async def aggregate_for_prep(
        self, prep_id: UUID
    ) -> list[tuple[FeedbackDimension | str, VoteValue | str, int]]:
        """Grouped counts of feedback rows by (dimension, value)."""

    @abstractmethod
    async def recent(self, limit: int = 10) -> list[PromptFeedback]:
        pass


class IPromptScoreRepository(ABC):

    @abstractmethod
    async def get_by_prep(self, prep_id: UUID) -> Optional[PromptScore]:
        pass

    @abstractmethod
    async def upsert(self, score: PromptScore) -> PromptScore:
        pass

    @abstractmethod
    async def ranked(self, descending: bool, limit: int = 6) -> list[PromptScoreEntry]:
        """Scores with at least one vote, ordered by score then total then prep id."""


class ISuggestionRepository(ABC):

    @abstractmethod
    async def create(self, suggestion: Suggestion) -> Suggestion:
        pass

    @abstractmethod
    async def get(self, kind: SuggestionKind, suggestion_id: UUID) -> Optional[Suggestion]:
        pass

    @abstractmethod
    async def list_pending(self, kind: SuggestionKind) -> list[Suggestion]:
        pass

    @abstractmethod
    async def transition(
        self,
        kind: SuggestionKind,
        suggestion_id: UUID,
        status: SuggestionStatus,
        moderator_note: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        """Move a PENDING suggestion to ``status``.

        Returns False when no PENDING row matched, which means another
        moderator resolved it first.
        """


class IReadingStatusRepository(ABC):

    @abstractmethod
    async def get(self, user_id: UUID, book_id: UUID) -> Optional[ReadingStatus]:
        pass

    @abstractmethod
    async def upsert(self, user_id: UUID, book_id: UUID, status: ReadingState) -> ReadingStatus:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID, status: ReadingState) -> list[ReadingStatus]:
        """Entries with their books, most recently updated first."""


class ICacheBackend(ABC):

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        pass
