"""Domain-level application service interfaces (ports).

Route handlers depend on these abstractions only.  Concrete implementations
live in ``app/services/`` and are wired by ``app/core/dependencies.py``, so
any of them can be replaced through ``app.dependency_overrides`` in tests.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from app.domain.entities import (
    Author,
    Book,
    BookFilters,
    FeedbackDimension,
    Genre,
    Keyword,
    Prep,
    ReadingState,
    ReadingStatus,
    Suggestion,
    SuggestionKind,
    UserProfile,
    VoteValue,
)


class IFeedbackService(ABC):

    @abstractmethod
    async def submit_feedback(
        self,
        user: UserProfile,
        book_slug: str,
        prep_id: UUID,
        value: VoteValue,
        dimension: FeedbackDimension = FeedbackDimension.CORRECT,
        note: Optional[str] = None,
    ) -> Any:
        """Record one feedback event and return the refreshed score summary."""

    @abstractmethod
    async def feedback_insights(self, limit: int = 6, recent_limit: int = 10) -> Any:
        pass


class IModerationService(ABC):

    @abstractmethod
    async def list_pending(self, kind: SuggestionKind) -> list[Suggestion]:
        pass

    @abstractmethod
    async def approve_suggestion(
        self, kind: SuggestionKind, suggestion_id: UUID, note: Optional[str] = None
    ) -> Any:
        pass

    @abstractmethod
    async def reject_suggestion(
        self, kind: SuggestionKind, suggestion_id: UUID, note: Optional[str] = None
    ) -> Any:
        pass


class ISuggestionService(ABC):

    @abstractmethod
    async def suggest_book(
        self,
        user: UserProfile,
        title: str,
        author_name: str,
        notes: Optional[str] = None,
        genre_ideas: Optional[list[str]] = None,
        prep_ideas: Optional[list[str]] = None,
    ) -> Suggestion:
        pass

    @abstractmethod
    async def suggest_metadata(
        self,
        user: UserProfile,
        book_slug: str,
        synopsis: Optional[str] = None,
        genres: Optional[list[str]] = None,
    ) -> Suggestion:
        pass

    @abstractmethod
    async def suggest_prep(
        self,
        user: UserProfile,
        book_slug: str,
        title: str,
        description: str,
        keyword_hints: Optional[list[str]] = None,
    ) -> Suggestion:
        pass


class ICatalogService(ABC):

    @abstractmethod
    async def list_books(
        self, filters: BookFilters, page: int = 1, page_size: int = 20
    ) -> tuple[list[Book], int]:
        pass

    @abstractmethod
    async def get_book(self, slug: str) -> Book:
        pass

    @abstractmethod
    async def list_preps(self, slug: str) -> list[Prep]:
        pass

    @abstractmethod
    async def list_genres(self) -> list[Genre]:
        pass

    @abstractmethod
    async def list_authors(self) -> list[Author]:
        pass

    @abstractmethod
    async def list_keywords(self) -> list[Keyword]:
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        pass


class IAdminCatalogService(ABC):

    @abstractmethod
    async def list_books(
        self, search: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> tuple[list[Book], int]:
        pass

    @abstractmethod
    async def get_book(self, slug: str) -> Book:
        pass

    @abstractmethod
    async def create_book(self, **fields: Any) -> Book:
        pass

    @abstractmethod
    async def update_book(self, slug: str, **fields: Any) -> Book:
        pass

    @abstractmethod
    async def create_prep(self, slug: str, **fields: Any) -> Prep:
        pass

    @abstractmethod
    async def update_prep(self, slug: str, prep_id: UUID, **fields: Any) -> Prep:
        pass

    @abstractmethod
    async def delete_prep(self, slug: str, prep_id: UUID) -> None:
        pass


class IProfileService(ABC):

    @abstractmethod
    async def ensure_profile(self, claims: Any) -> UserProfile:
        """Create or refresh the profile for a verified identity."""

    @abstractmethod
    async def update_display_name(self, user: UserProfile, display_name: str) -> UserProfile:
        pass


class IReadingService(ABC):

    @abstractmethod
    async def list_shelf(self, user: UserProfile) -> list[ReadingStatus]:
        pass

    @abstractmethod
    async def start_reading(
        self, user: UserProfile, slug: str, status: ReadingState = ReadingState.READING
    ) -> ReadingStatus:
        pass

    @abstractmethod
    async def finish_reading(self, user: UserProfile, slug: str) -> ReadingStatus:
        pass
