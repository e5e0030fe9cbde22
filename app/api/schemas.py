"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

from app.domain.entities import (
    Book,
    FeedbackDimension,
    Prep,
    ReadingState,
    ReadingStatus,
    Suggestion,
    SuggestionKind,
    SuggestionStatus,
    UserRole,
    VoteValue,
)
from app.services.covers import CoverSize, resolve_cover_image_url
from app.services.prompt_scores import ScoreSummary, summary_for_prep, to_votes_payload

def _strip_blank(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Shared references
# ---------------------------------------------------------------------------
class AuthorRef(BaseModel):
    id: UUID
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class GenreResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class KeywordResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookRefResponse(BaseModel):
    id: UUID
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class AuthorResponse(AuthorRef):
    bio: Optional[str] = None
    book_count: int = 0


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------
class DimensionVotes(BaseModel):
    dimension: FeedbackDimension
    agree: int
    disagree: int
    total: int


class VotesPayload(BaseModel):
    agree: int
    disagree: int
    total: int
    score: float
    dimensions: list[DimensionVotes]

    @classmethod
    def from_summary(cls, summary: ScoreSummary) -> "VotesPayload":
        return cls.model_validate(to_votes_payload(summary))


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class PrepResponse(BaseModel):
    id: UUID
    heading: str
    summary: str
    watch_for: Optional[str] = None
    color_hint: Optional[str] = None
    keywords: list[KeywordResponse]
    votes: VotesPayload
    updated_at: datetime

    @classmethod
    def from_entity(cls, prep: Prep) -> "PrepResponse":
        return cls(
            id=prep.id,
            heading=prep.heading,
            summary=prep.summary,
            watch_for=prep.watch_for,
            color_hint=prep.color_hint,
            keywords=[KeywordResponse.model_validate(k) for k in prep.keywords],
            votes=VotesPayload.from_summary(summary_for_prep(prep)),
            updated_at=prep.updated_at,
        )


class BookListItem(BaseModel):
    id: UUID
    slug: str
    title: str
    subtitle: Optional[str] = None
    synopsis: Optional[str] = None
    cover_image_url: Optional[str] = None
    isbn: Optional[str] = None
    published_year: Optional[int] = None
    author: Optional[AuthorRef] = None
    genres: list[GenreResponse]
    prep_count: int

    @classmethod
    def from_entity(cls, book: Book, cover_size: CoverSize = "M") -> "BookListItem":
        return cls(
            id=book.id,
            slug=book.slug,
            title=book.title,
            subtitle=book.subtitle,
            synopsis=book.synopsis,
            cover_image_url=resolve_cover_image_url(book, cover_size),
            isbn=book.isbn,
            published_year=book.published_year,
            author=AuthorRef.model_validate(book.author) if book.author else None,
            genres=[GenreResponse.model_validate(g) for g in book.genres],
            prep_count=book.prep_count,
        )


class BookDetailResponse(BookListItem):
    preps: list[PrepResponse]
    updated_at: datetime

    @classmethod
    def from_entity(cls, book: Book, cover_size: CoverSize = "L") -> "BookDetailResponse":
        item = BookListItem.from_entity(book, cover_size)
        return cls(
            **item.model_dump(),
            preps=[PrepResponse.from_entity(p) for p in book.preps],
            updated_at=book.updated_at,
        )


class Pagination(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "Pagination":
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=max(1, -(-total // page_size)),
        )


class BookListResponse(BaseModel):
    pagination: Pagination
    results: list[BookListItem]


class BookPrepsResponse(BaseModel):
    slug: str
    preps: list[PrepResponse]


class YearBounds(BaseModel):
    earliest: Optional[int] = None
    latest: Optional[int] = None


class CatalogStatsResponse(BaseModel):
    books: int
    authors: int
    preps: int
    years: YearBounds


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------
class FeedbackRequest(BaseModel):
    value: VoteValue
    dimension: FeedbackDimension = FeedbackDimension.CORRECT
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("note", mode="before")
    @classmethod
    def blank_note(cls, value: Any) -> Any:
        return _strip_blank(value)


class FeedbackResponse(BaseModel):
    prep_id: UUID
    votes: VotesPayload


class ScoreEntryResponse(BaseModel):
    prep_id: UUID
    heading: str
    summary: str
    book: BookRefResponse
    votes: VotesPayload


class PrepRefResponse(BaseModel):
    id: UUID
    heading: Optional[str] = None


class RecentFeedbackResponse(BaseModel):
    id: UUID
    dimension: FeedbackDimension
    value: VoteValue
    note: Optional[str] = None
    created_at: datetime
    prep: PrepRefResponse
    book: Optional[BookRefResponse] = None


class FeedbackInsightsResponse(BaseModel):
    top_prompts: list[ScoreEntryResponse]
    needs_attention: list[ScoreEntryResponse]
    recent_feedback: list[RecentFeedbackResponse]


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------
class BookSuggestionRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=180)
    author_name: str = Field(..., min_length=3, max_length=120)
    notes: Optional[str] = Field(None, max_length=2000)
    genre_ideas: list[str] = Field(default_factory=list, max_length=12)
    prep_ideas: list[str] = Field(default_factory=list, max_length=12)


class MetadataSuggestionRequest(BaseModel):
    synopsis: Optional[str] = Field(None, min_length=40, max_length=2000)
    genres: list[str] = Field(default_factory=list, max_length=10)

    @field_validator("synopsis", mode="before")
    @classmethod
    def blank_synopsis(cls, value: Any) -> Any:
        return _strip_blank(value)

    @model_validator(mode="after")
    def require_synopsis_or_genres(self) -> "MetadataSuggestionRequest":
        if not self.synopsis and not self.genres:
            raise ValueError("Provide a synopsis or at least one genre.")
        return self


class PrepSuggestionRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=120)
    description: str = Field(..., min_length=10, max_length=2000)
    keyword_hints: list[str] = Field(default_factory=list, max_length=10)


class SuggestionSubmittedResponse(BaseModel):
    message: str
    suggestion_id: UUID
    status: SuggestionStatus


class SubmitterResponse(BaseModel):
    id: UUID
    display_name: str

    model_config = ConfigDict(from_attributes=True)


class PendingSuggestionResponse(BaseModel):
    """One pending suggestion; only the fields of its kind are populated."""

    id: UUID
    kind: SuggestionKind
    status: SuggestionStatus
    created_at: datetime
    submitted_by: Optional[SubmitterResponse] = None
    book: Optional[BookRefResponse] = None
    title: Optional[str] = None
    author_name: Optional[str] = None
    notes: Optional[str] = None
    genre_ideas: Optional[list[str]] = None
    prep_ideas: Optional[list[str]] = None
    synopsis: Optional[str] = None
    genres: Optional[list[str]] = None
    description: Optional[str] = None
    keyword_hints: Optional[list[str]] = None

    @classmethod
    def from_entity(cls, suggestion: Suggestion) -> "PendingSuggestionResponse":
        data: dict[str, Any] = {
            "id": suggestion.id,
            "kind": suggestion.kind,
            "status": suggestion.status,
            "created_at": suggestion.created_at,
            "submitted_by": (
                SubmitterResponse.model_validate(suggestion.submitted_by) if suggestion.submitted_by else None
            ),
        }
        book = getattr(suggestion, "book", None)
        if book is not None:
            data["book"] = BookRefResponse.model_validate(book)
        if suggestion.kind is SuggestionKind.BOOK:
            data.update(
                title=suggestion.title,
                author_name=suggestion.author_name,
                notes=suggestion.notes,
                genre_ideas=suggestion.genre_ideas,
                prep_ideas=suggestion.prep_ideas,
            )
        elif suggestion.kind is SuggestionKind.METADATA:
            data.update(synopsis=suggestion.suggested_synopsis, genres=suggestion.suggested_genres)
        else:
            data.update(
                title=suggestion.title,
                description=suggestion.description,
                keyword_hints=suggestion.keyword_hints,
            )
        return cls(**data)


class PendingSuggestionListResponse(BaseModel):
    suggestions: list[PendingSuggestionResponse]


class ModerationNoteRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=500)


class ModerationResponse(BaseModel):
    suggestion_id: UUID
    kind: SuggestionKind
    status: SuggestionStatus
    book: Optional[BookRefResponse] = None
    prep: Optional[PrepResponse] = None


# ---------------------------------------------------------------------------
# Admin catalog
# ---------------------------------------------------------------------------
class AdminBookCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=240)
    subtitle: Optional[str] = Field(None, max_length=240)
    slug: Optional[str] = Field(None, min_length=3, max_length=240, pattern=r"^[a-z0-9-]+$")
    synopsis: Optional[str] = Field(None, max_length=4000)
    cover_image_url: Optional[HttpUrl] = None
    published_year: Optional[int] = Field(None, ge=0, le=9999)
    isbn: Optional[str] = Field(None, max_length=32)
    author_id: Optional[UUID] = None
    author_name: Optional[str] = Field(None, min_length=2, max_length=180)
    genre_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_author(self) -> "AdminBookCreateRequest":
        if not self.author_id and not self.author_name:
            raise ValueError("Provide authorId or authorName.")
        return self


class AdminBookUpdateRequest(BaseModel):
    """Partial update; an empty string clears a nullable field."""

    title: Optional[str] = Field(None, min_length=3, max_length=240)
    subtitle: Optional[str] = Field(None, max_length=240)
    synopsis: Optional[str] = Field(None, max_length=4000)
    cover_image_url: Optional[HttpUrl] = None
    published_year: Optional[int] = Field(None, ge=0, le=9999)
    isbn: Optional[str] = Field(None, max_length=32)
    genre_ids: Optional[list[UUID]] = None

    @field_validator("subtitle", "synopsis", "cover_image_url", "published_year", "isbn", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _strip_blank(value)


class AdminPrepUpsertRequest(BaseModel):
    heading: str = Field(..., min_length=3, max_length=160)
    summary: str = Field(..., min_length=10, max_length=2000)
    watch_for: Optional[str] = Field(None, max_length=2000)
    color_hint: Optional[str] = Field(None, max_length=32)
    keywords: list[str] = Field(default_factory=list, max_length=12)


class TaskDispatchResponse(BaseModel):
    task_id: str
    status: str = "PENDING"


# ---------------------------------------------------------------------------
# Reading shelf
# ---------------------------------------------------------------------------
class ReadingStatusRequest(BaseModel):
    status: ReadingState = ReadingState.READING


class ReadingStatusResponse(BaseModel):
    id: UUID
    status: ReadingState
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReadingEntryResponse(BaseModel):
    id: UUID
    status: ReadingState
    started_at: datetime
    updated_at: datetime
    book: BookListItem

    @classmethod
    def from_entity(cls, entry: ReadingStatus) -> "ReadingEntryResponse":
        return cls(
            id=entry.id,
            status=entry.status,
            started_at=entry.created_at,
            updated_at=entry.updated_at,
            book=BookListItem.from_entity(entry.book),
        )


class ReadingShelfResponse(BaseModel):
    entries: list[ReadingEntryResponse]


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
class ProfileResponse(BaseModel):
    id: UUID
    display_name: str
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(..., min_length=2, max_length=80)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
class TaskStatusResponse(BaseModel):
    """Celery task status for polling."""

    task_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
