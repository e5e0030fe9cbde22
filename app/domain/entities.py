"""Domain entities for BookPrepper."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


class VoteValue(str, Enum):
    AGREE = "AGREE"
    DISAGREE = "DISAGREE"


class FeedbackDimension(str, Enum):
    """The ten feedback axes, declared in canonical display order."""

    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    FUN = "FUN"
    BORING = "BORING"
    USEFUL = "USEFUL"
    SURPRISING = "SURPRISING"
    NOT_USEFUL = "NOT_USEFUL"
    CONFUSING = "CONFUSING"
    COMMON = "COMMON"
    SPARSE = "SPARSE"


class SuggestionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SuggestionKind(str, Enum):
    BOOK = "books"
    METADATA = "metadata"
    PREP = "preps"


class ReadingState(str, Enum):
    READING = "READING"
    DONE = "DONE"


@dataclass
class UserProfile:
    id: UUID
    subject: str
    email: str
    display_name: str
    role: UserRole = UserRole.MEMBER
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Author:
    id: UUID
    name: str
    slug: str
    bio: Optional[str] = None
    book_count: int = 0


@dataclass
class Genre:
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None


@dataclass
class Keyword:
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None


@dataclass
class PromptScore:
    """Derived per-prep cache of feedback counts; rebuildable from feedback rows."""

    prep_id: UUID
    agree_count: int = 0
    disagree_count: int = 0
    total_count: int = 0
    score: float = 0.0
    dimension_tallies: Optional[dict] = None
    last_feedback_at: Optional[datetime] = None
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Prep:
    id: UUID
    book_id: UUID
    heading: str
    summary: str
    watch_for: Optional[str] = None
    color_hint: Optional[str] = None
    keywords: list[Keyword] = field(default_factory=list)
    score: Optional[PromptScore] = None
    agree_votes: int = 0
    disagree_votes: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Book:
    id: UUID
    title: str
    slug: str
    author_id: UUID
    subtitle: Optional[str] = None
    synopsis: Optional[str] = None
    cover_image_url: Optional[str] = None
    isbn: Optional[str] = None
    published_year: Optional[int] = None
    author: Optional[Author] = None
    genres: list[Genre] = field(default_factory=list)
    preps: list[Prep] = field(default_factory=list)
    prep_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class BookRef:
    id: UUID
    title: str
    slug: str


@dataclass
class PrepVote:
    """Legacy single vote per (user, prep)."""

    id: UUID
    prep_id: UUID
    user_id: UUID
    value: VoteValue
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class PromptFeedback:
    """Immutable dimensioned feedback event."""

    id: UUID
    prep_id: UUID
    user_id: UUID
    dimension: FeedbackDimension
    value: VoteValue
    note: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    prep_heading: Optional[str] = None
    book: Optional[BookRef] = None


@dataclass(kw_only=True)
class Suggestion:
    id: UUID
    submitted_by_id: UUID
    status: SuggestionStatus = SuggestionStatus.PENDING
    moderator_note: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    submitted_by: Optional[UserProfile] = None

    kind: SuggestionKind = field(init=False)


@dataclass(kw_only=True)
class BookSuggestion(Suggestion):
    title: str
    author_name: str
    notes: Optional[str] = None
    genre_ideas: list[str] = field(default_factory=list)
    prep_ideas: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.kind = SuggestionKind.BOOK


@dataclass(kw_only=True)
class BookMetadataSuggestion(Suggestion):
    book_id: UUID
    suggested_synopsis: Optional[str] = None
    suggested_genres: list[str] = field(default_factory=list)
    book: Optional[BookRef] = None

    def __post_init__(self) -> None:
        self.kind = SuggestionKind.METADATA


@dataclass(kw_only=True)
class PrepSuggestion(Suggestion):
    book_id: UUID
    title: str
    description: str
    keyword_hints: list[str] = field(default_factory=list)
    book: Optional[BookRef] = None

    def __post_init__(self) -> None:
        self.kind = SuggestionKind.PREP


@dataclass
class PromptScoreEntry:
    """A score record joined with the prep and book it belongs to."""

    score: PromptScore
    heading: str
    summary: str
    book: BookRef


@dataclass
class BookFilters:
    search: Optional[str] = None
    author: Optional[str] = None
    genre_slugs: list[str] = field(default_factory=list)
    keyword_slugs: list[str] = field(default_factory=list)


@dataclass
class CatalogStats:
    books: int
    authors: int
    preps: int
    earliest_year: Optional[int] = None
    latest_year: Optional[int] = None


@dataclass
class ReadingStatus:
    """A reader's shelf entry for one book; at most one per (user, book)."""

    id: UUID
    user_id: UUID
    book_id: UUID
    status: ReadingState = ReadingState.READING
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    book: Optional[Book] = None
