"""Repository implementations.

Repositories only ``flush``; committing is the job of
``SqlAlchemyUnitOfWork`` so that multi-step writes share one transaction.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.entities import (
    Author,
    Book,
    BookFilters,
    BookMetadataSuggestion,
    BookRef,
    BookSuggestion,
    CatalogStats,
    FeedbackDimension,
    Genre,
    Keyword,
    Prep,
    PrepSuggestion,
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
    utcnow,
)
from app.domain.repositories import (
    IAuthorRepository,
    IBookRepository,
    IFeedbackRepository,
    IGenreRepository,
    IKeywordRepository,
    IPrepRepository,
    IPromptScoreRepository,
    IReadingStatusRepository,
    ISuggestionRepository,
    IUserProfileRepository,
)
from app.infrastructure.database.models import (
    AuthorModel,
    BookMetadataSuggestionModel,
    BookModel,
    BookSuggestionModel,
    GenreModel,
    KeywordModel,
    PrepModel,
    PrepSuggestionModel,
    PrepVoteModel,
    PromptFeedbackModel,
    PromptScoreModel,
    ReadingStatusModel,
    UserProfileModel,
    book_genres,
)
from app.services.text import extract_string_array, tokenize_search


async def _prep_counts(session: AsyncSession, book_ids: list[UUID]) -> dict[UUID, int]:
    if not book_ids:
        return {}
    counts = await session.execute(
        select(PrepModel.book_id, func.count(PrepModel.id))
        .where(PrepModel.book_id.in_(book_ids))
        .group_by(PrepModel.book_id)
    )
    return {book_id: count for book_id, count in counts.all()}


# ---------------------------------------------------------------------------
# User Profile Repository
# ---------------------------------------------------------------------------
class UserProfileRepository(IUserProfileRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_by_subject(
        self, subject: str, email: str, display_name: str, role: Optional[UserRole] = None
    ) -> UserProfile:
        result = await self.session.execute(
            select(UserProfileModel).where(UserProfileModel.subject == subject)
        )
        db_user = result.scalar_one_or_none()
        if db_user is None:
            db_user = UserProfileModel(
                id=uuid4(),
                subject=subject,
                email=email,
                display_name=display_name,
                role=(role or UserRole.MEMBER).value,
            )
            self.session.add(db_user)
        else:
            db_user.email = email
            if role is not None:
                db_user.role = role.value
        await self.session.flush()
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        result = await self.session.execute(select(UserProfileModel).where(UserProfileModel.id == user_id))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def update_display_name(self, user_id: UUID, display_name: str) -> UserProfile:
        result = await self.session.execute(select(UserProfileModel).where(UserProfileModel.id == user_id))
        db_user = result.scalar_one()
        db_user.display_name = display_name
        db_user.updated_at = utcnow()
        await self.session.flush()
        return self._to_entity(db_user)

    @staticmethod
    def _to_entity(model: UserProfileModel) -> UserProfile:
        return UserProfile(
            id=model.id,
            subject=model.subject,
            email=model.email,
            display_name=model.display_name,
            role=UserRole(model.role),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Author Repository
# ---------------------------------------------------------------------------
class AuthorRepository(IAuthorRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, author_id: UUID) -> Optional[Author]:
        result = await self.session.execute(select(AuthorModel).where(AuthorModel.id == author_id))
        db_author = result.scalar_one_or_none()
        return self._to_entity(db_author) if db_author else None

    async def get_by_slug(self, slug: str) -> Optional[Author]:
        result = await self.session.execute(select(AuthorModel).where(AuthorModel.slug == slug))
        db_author = result.scalar_one_or_none()
        return self._to_entity(db_author) if db_author else None

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(select(AuthorModel.id).where(AuthorModel.slug == slug))
        return result.first() is not None

    async def create(self, author: Author) -> Author:
        db_author = AuthorModel(id=author.id, name=author.name, slug=author.slug, bio=author.bio)
        self.session.add(db_author)
        await self.session.flush()
        return self._to_entity(db_author)

    async def list_all(self) -> list[Author]:
        result = await self.session.execute(
            select(AuthorModel, func.count(BookModel.id))
            .outerjoin(BookModel, BookModel.author_id == AuthorModel.id)
            .group_by(AuthorModel.id)
            .order_by(AuthorModel.name)
        )
        return [self._to_entity(model, book_count) for model, book_count in result.all()]

    @staticmethod
    def _to_entity(model: AuthorModel, book_count: int = 0) -> Author:
        return Author(id=model.id, name=model.name, slug=model.slug, bio=model.bio, book_count=book_count)


# ---------------------------------------------------------------------------
# Genre Repository
# ---------------------------------------------------------------------------
class GenreRepository(IGenreRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_slug(self, slug: str) -> Optional[Genre]:
        result = await self.session.execute(select(GenreModel).where(GenreModel.slug == slug))
        db_genre = result.scalar_one_or_none()
        return self._to_entity(db_genre) if db_genre else None

    async def get_by_slugs(self, slugs: list[str]) -> list[Genre]:
        if not slugs:
            return []
        result = await self.session.execute(select(GenreModel).where(GenreModel.slug.in_(slugs)))
        return [self._to_entity(genre) for genre in result.scalars().all()]

    async def get_by_ids(self, genre_ids: list[UUID]) -> list[Genre]:
        if not genre_ids:
            return []
        result = await self.session.execute(select(GenreModel).where(GenreModel.id.in_(genre_ids)))
        return [self._to_entity(genre) for genre in result.scalars().all()]

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(select(GenreModel.id).where(GenreModel.slug == slug))
        return result.first() is not None

    async def create(self, genre: Genre) -> Genre:
        db_genre = GenreModel(id=genre.id, name=genre.name, slug=genre.slug, description=genre.description)
        self.session.add(db_genre)
        await self.session.flush()
        return self._to_entity(db_genre)

    async def list_all(self) -> list[Genre]:
        result = await self.session.execute(select(GenreModel).order_by(GenreModel.name))
        return [self._to_entity(genre) for genre in result.scalars().all()]

    @staticmethod
    def _to_entity(model: GenreModel) -> Genre:
        return Genre(id=model.id, name=model.name, slug=model.slug, description=model.description)


# ---------------------------------------------------------------------------
# Keyword Repository
# ---------------------------------------------------------------------------
class KeywordRepository(IKeywordRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_slug(self, slug: str) -> Optional[Keyword]:
        result = await self.session.execute(select(KeywordModel).where(KeywordModel.slug == slug))
        db_keyword = result.scalar_one_or_none()
        return self._to_entity(db_keyword) if db_keyword else None

    async def create(self, keyword: Keyword) -> Keyword:
        db_keyword = KeywordModel(
            id=keyword.id, name=keyword.name, slug=keyword.slug, description=keyword.description
        )
        self.session.add(db_keyword)
        await self.session.flush()
        return self._to_entity(db_keyword)

    async def rename(self, keyword_id: UUID, name: str) -> Keyword:
        result = await self.session.execute(select(KeywordModel).where(KeywordModel.id == keyword_id))
        db_keyword = result.scalar_one()
        db_keyword.name = name
        await self.session.flush()
        return self._to_entity(db_keyword)

    async def list_all(self) -> list[Keyword]:
        result = await self.session.execute(select(KeywordModel).order_by(KeywordModel.name))
        return [self._to_entity(keyword) for keyword in result.scalars().all()]

    @staticmethod
    def _to_entity(model: KeywordModel) -> Keyword:
        return Keyword(id=model.id, name=model.name, slug=model.slug, description=model.description)


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel)
            .where(BookModel.id == book_id)
            .execution_options(populate_existing=True)
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def get_by_slug(self, slug: str) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel)
            .where(BookModel.slug == slug)
            .options(selectinload(BookModel.preps))
            .execution_options(populate_existing=True)
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book, with_preps=True) if db_book else None

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(select(BookModel.id).where(BookModel.slug == slug))
        return result.first() is not None

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            title=book.title,
            subtitle=book.subtitle,
            slug=book.slug,
            synopsis=book.synopsis,
            cover_image_url=book.cover_image_url,
            isbn=book.isbn,
            published_year=book.published_year,
            author_id=book.author_id,
        )
        self.session.add(db_book)
        await self.session.flush()
        return await self.get_by_id(db_book.id)

    async def update(self, book: Book) -> Book:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book.id))
        db_book = result.scalar_one()
        db_book.title = book.title
        db_book.subtitle = book.subtitle
        db_book.synopsis = book.synopsis
        db_book.cover_image_url = book.cover_image_url
        db_book.isbn = book.isbn
        db_book.published_year = book.published_year
        db_book.updated_at = utcnow()
        await self.session.flush()
        return await self.get_by_id(book.id)

    async def search(
        self, filters: BookFilters, skip: int = 0, limit: int = 20
    ) -> tuple[list[Book], int]:
        stmt = select(BookModel).join(AuthorModel, BookModel.author_id == AuthorModel.id)
        for condition in self._filter_conditions(filters):
            stmt = stmt.where(condition)

        total = (await self.session.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        result = await self.session.execute(stmt.order_by(BookModel.title).offset(skip).limit(limit))
        db_books = result.scalars().all()

        prep_counts = await _prep_counts(self.session, [b.id for b in db_books])

        books = []
        for db_book in db_books:
            book = self._to_entity(db_book)
            book.prep_count = prep_counts.get(db_book.id, 0)
            books.append(book)
        return books, total

    @staticmethod
    def _filter_conditions(filters: BookFilters) -> list:
        conditions = []
        if filters.search:
            tokens = tokenize_search(filters.search) or [filters.search.strip()]
            for token in tokens:
                pattern = f"%{token}%"
                conditions.append(
                    or_(
                        BookModel.title.ilike(pattern),
                        BookModel.synopsis.ilike(pattern),
                        BookModel.slug.ilike(pattern),
                        AuthorModel.name.ilike(pattern),
                    )
                )
        if filters.author:
            term = filters.author.strip()
            conditions.append(or_(AuthorModel.slug == term, AuthorModel.name.ilike(f"%{term}%")))
        if filters.genre_slugs:
            conditions.append(BookModel.genres.any(GenreModel.slug.in_(filters.genre_slugs)))
        if filters.keyword_slugs:
            conditions.append(
                BookModel.preps.any(PrepModel.keywords.any(KeywordModel.slug.in_(filters.keyword_slugs)))
            )
        return conditions

    async def set_genres(self, book_id: UUID, genre_ids: list[UUID]) -> None:
        await self.session.execute(delete(book_genres).where(book_genres.c.book_id == book_id))
        unique_ids = list(dict.fromkeys(genre_ids))
        if unique_ids:
            await self.session.execute(
                insert(book_genres),
                [{"book_id": book_id, "genre_id": genre_id} for genre_id in unique_ids],
            )
        await self.session.flush()

    async def stats(self) -> CatalogStats:
        books = (await self.session.execute(select(func.count()).select_from(BookModel))).scalar_one()
        authors = (await self.session.execute(select(func.count()).select_from(AuthorModel))).scalar_one()
        preps = (await self.session.execute(select(func.count()).select_from(PrepModel))).scalar_one()
        earliest, latest = (
            await self.session.execute(
                select(func.min(BookModel.published_year), func.max(BookModel.published_year))
            )
        ).one()
        return CatalogStats(
            books=books, authors=authors, preps=preps, earliest_year=earliest, latest_year=latest
        )

    @staticmethod
    def _to_entity(model: BookModel, with_preps: bool = False) -> Book:
        preps = [PrepRepository._to_entity(prep) for prep in model.preps] if with_preps else []
        return Book(
            id=model.id,
            title=model.title,
            subtitle=model.subtitle,
            slug=model.slug,
            synopsis=model.synopsis,
            cover_image_url=model.cover_image_url,
            isbn=model.isbn,
            published_year=model.published_year,
            author_id=model.author_id,
            author=AuthorRepository._to_entity(model.author) if model.author else None,
            genres=[GenreRepository._to_entity(genre) for genre in model.genres],
            preps=preps,
            prep_count=len(preps),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Prep Repository
# ---------------------------------------------------------------------------
class PrepRepository(IPrepRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_book(self, book_id: UUID, prep_id: UUID) -> Optional[Prep]:
        db_prep = await self._get_model(book_id, prep_id)
        return self._to_entity(db_prep) if db_prep else None

    async def list_ids(self) -> list[UUID]:
        result = await self.session.execute(select(PrepModel.id).order_by(PrepModel.created_at))
        return list(result.scalars().all())

    async def create(self, prep: Prep, keyword_ids: list[UUID]) -> Prep:
        db_prep = PrepModel(
            id=prep.id,
            book_id=prep.book_id,
            heading=prep.heading,
            summary=prep.summary,
            watch_for=prep.watch_for,
            color_hint=prep.color_hint,
            keywords=await self._keywords(keyword_ids),
        )
        self.session.add(db_prep)
        await self.session.flush()
        return await self.get_for_book(prep.book_id, prep.id)

    async def update(self, prep: Prep, keyword_ids: list[UUID]) -> Prep:
        db_prep = await self._get_model(prep.book_id, prep.id)
        db_prep.heading = prep.heading
        db_prep.summary = prep.summary
        db_prep.watch_for = prep.watch_for
        db_prep.color_hint = prep.color_hint
        db_prep.keywords = await self._keywords(keyword_ids)
        db_prep.updated_at = utcnow()
        await self.session.flush()
        return await self.get_for_book(prep.book_id, prep.id)

    async def delete(self, prep_id: UUID) -> bool:
        result = await self.session.execute(
            select(PrepModel).where(PrepModel.id == prep_id).execution_options(populate_existing=True)
        )
        db_prep = result.scalar_one_or_none()
        if db_prep is None:
            return False
        await self.session.execute(delete(PromptFeedbackModel).where(PromptFeedbackModel.prep_id == prep_id))
        await self.session.delete(db_prep)
        await self.session.flush()
        return True

    async def _get_model(self, book_id: UUID, prep_id: UUID) -> Optional[PrepModel]:
        result = await self.session.execute(
            select(PrepModel)
            .where(PrepModel.id == prep_id, PrepModel.book_id == book_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _keywords(self, keyword_ids: list[UUID]) -> list[KeywordModel]:
        if not keyword_ids:
            return []
        result = await self.session.execute(select(KeywordModel).where(KeywordModel.id.in_(keyword_ids)))
        return list(result.scalars().all())

    @staticmethod
    def _to_entity(model: PrepModel) -> Prep:
        return Prep(
            id=model.id,
            book_id=model.book_id,
            heading=model.heading,
            summary=model.summary,
            watch_for=model.watch_for,
            color_hint=model.color_hint,
            keywords=[KeywordRepository._to_entity(keyword) for keyword in model.keywords],
            score=PromptScoreRepository._to_entity(model.score) if model.score else None,
            agree_votes=sum(1 for vote in model.votes if vote.value == VoteValue.AGREE.value),
            disagree_votes=sum(1 for vote in model.votes if vote.value == VoteValue.DISAGREE.value),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Feedback Repository
# ---------------------------------------------------------------------------
class FeedbackRepository(IFeedbackRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_vote(self, prep_id: UUID, user_id: UUID, value: VoteValue) -> PrepVote:
        result = await self.session.execute(
            select(PrepVoteModel).where(PrepVoteModel.prep_id == prep_id, PrepVoteModel.user_id == user_id)
        )
        db_vote = result.scalar_one_or_none()
        if db_vote is None:
            db_vote = PrepVoteModel(id=uuid4(), prep_id=prep_id, user_id=user_id, value=value.value)
            self.session.add(db_vote)
        else:
            db_vote.value = value.value
            db_vote.updated_at = utcnow()
        await self.session.flush()
        return PrepVote(
            id=db_vote.id,
            prep_id=db_vote.prep_id,
            user_id=db_vote.user_id,
            value=VoteValue(db_vote.value),
            updated_at=db_vote.updated_at,
        )

    async def append(self, feedback: PromptFeedback) -> PromptFeedback:
        db_feedback = PromptFeedbackModel(
            id=feedback.id,
            prep_id=feedback.prep_id,
            user_id=feedback.user_id,
            dimension=feedback.dimension.value,
            value=feedback.value.value,
            note=feedback.note,
            created_at=feedback.created_at,
        )
        self.session.add(db_feedback)
        await self.session.flush()
        return feedback

    async def aggregate_for_prep(self, prep_id: UUID) -> list[tuple[str, str, int]]:
        result = await self.session.execute(
            select(PromptFeedbackModel.dimension, PromptFeedbackModel.value, func.count(PromptFeedbackModel.id))
            .where(PromptFeedbackModel.prep_id == prep_id)
            .group_by(PromptFeedbackModel.dimension, PromptFeedbackModel.value)
        )
        return [(dimension, value, count) for dimension, value, count in result.all()]

    async def recent(self, limit: int = 10) -> list[PromptFeedback]:
        result = await self.session.execute(
            select(PromptFeedbackModel, PrepModel.heading, BookModel.id, BookModel.title, BookModel.slug)
            .join(PrepModel, PromptFeedbackModel.prep_id == PrepModel.id)
            .join(BookModel, PrepModel.book_id == BookModel.id)
            .order_by(PromptFeedbackModel.created_at.desc())
            .limit(limit)
        )
        return [
            PromptFeedback(
                id=model.id,
                prep_id=model.prep_id,
                user_id=model.user_id,
                dimension=FeedbackDimension(model.dimension),
                value=VoteValue(model.value),
                note=model.note,
                created_at=model.created_at,
                prep_heading=heading,
                book=BookRef(id=book_id, title=title, slug=slug),
            )
            for model, heading, book_id, title, slug in result.all()
        ]


# ---------------------------------------------------------------------------
# Prompt Score Repository
# ---------------------------------------------------------------------------
class PromptScoreRepository(IPromptScoreRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_prep(self, prep_id: UUID) -> Optional[PromptScore]:
        result = await self.session.execute(select(PromptScoreModel).where(PromptScoreModel.prep_id == prep_id))
        db_score = result.scalar_one_or_none()
        return self._to_entity(db_score) if db_score else None

    async def upsert(self, score: PromptScore) -> PromptScore:
        result = await self.session.execute(
            select(PromptScoreModel).where(PromptScoreModel.prep_id == score.prep_id)
        )
        db_score = result.scalar_one_or_none()
        if db_score is None:
            db_score = PromptScoreModel(id=uuid4(), prep_id=score.prep_id)
            self.session.add(db_score)
        db_score.agree_count = score.agree_count
        db_score.disagree_count = score.disagree_count
        db_score.total_count = score.total_count
        db_score.score = score.score
        db_score.dimension_tallies = score.dimension_tallies
        db_score.last_feedback_at = score.last_feedback_at
        db_score.updated_at = utcnow()
        await self.session.flush()
        return self._to_entity(db_score)

    async def ranked(self, descending: bool, limit: int = 6) -> list[PromptScoreEntry]:
        score_order = PromptScoreModel.score.desc() if descending else PromptScoreModel.score.asc()
        result = await self.session.execute(
            select(PromptScoreModel, PrepModel.heading, PrepModel.summary, BookModel.id, BookModel.title, BookModel.slug)
            .join(PrepModel, PromptScoreModel.prep_id == PrepModel.id)
            .join(BookModel, PrepModel.book_id == BookModel.id)
            .where(PromptScoreModel.total_count > 0)
            .order_by(score_order, PromptScoreModel.total_count.desc(), PromptScoreModel.prep_id.asc())
            .limit(limit)
        )
        return [
            PromptScoreEntry(
                score=self._to_entity(model),
                heading=heading,
                summary=summary,
                book=BookRef(id=book_id, title=title, slug=slug),
            )
            for model, heading, summary, book_id, title, slug in result.all()
        ]

    @staticmethod
    def _to_entity(model: PromptScoreModel) -> PromptScore:
        return PromptScore(
            prep_id=model.prep_id,
            agree_count=model.agree_count,
            disagree_count=model.disagree_count,
            total_count=model.total_count,
            score=model.score,
            dimension_tallies=model.dimension_tallies,
            last_feedback_at=model.last_feedback_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Suggestion Repository
# ---------------------------------------------------------------------------
_SUGGESTION_MODELS = {
    SuggestionKind.BOOK: BookSuggestionModel,
    SuggestionKind.METADATA: BookMetadataSuggestionModel,
    SuggestionKind.PREP: PrepSuggestionModel,
}


class SuggestionRepository(ISuggestionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, suggestion: Suggestion) -> Suggestion:
        common = dict(
            id=suggestion.id,
            submitted_by_id=suggestion.submitted_by_id,
            status=suggestion.status.value,
            created_at=suggestion.created_at,
        )
        if isinstance(suggestion, BookSuggestion):
            db_suggestion = BookSuggestionModel(
                **common,
                title=suggestion.title,
                author_name=suggestion.author_name,
                notes=suggestion.notes,
                genre_ideas=suggestion.genre_ideas,
                prep_ideas=suggestion.prep_ideas,
            )
        elif isinstance(suggestion, BookMetadataSuggestion):
            db_suggestion = BookMetadataSuggestionModel(
                **common,
                book_id=suggestion.book_id,
                suggested_synopsis=suggestion.suggested_synopsis,
                suggested_genres=suggestion.suggested_genres,
            )
        elif isinstance(suggestion, PrepSuggestion):
            db_suggestion = PrepSuggestionModel(
                **common,
                book_id=suggestion.book_id,
                title=suggestion.title,
                description=suggestion.description,
                keyword_hints=suggestion.keyword_hints,
            )
        else:
            raise TypeError(f"Unsupported suggestion type: {type(suggestion).__name__}")
        self.session.add(db_suggestion)
        await self.session.flush()
        return suggestion

    async def get(self, kind: SuggestionKind, suggestion_id: UUID) -> Optional[Suggestion]:
        model = _SUGGESTION_MODELS[kind]
        result = await self.session.execute(
            select(model).where(model.id == suggestion_id).execution_options(populate_existing=True)
        )
        db_suggestion = result.scalar_one_or_none()
        return self._to_entity(kind, db_suggestion) if db_suggestion else None

    async def list_pending(self, kind: SuggestionKind) -> list[Suggestion]:
        model = _SUGGESTION_MODELS[kind]
        result = await self.session.execute(
            select(model).where(model.status == SuggestionStatus.PENDING.value).order_by(model.created_at)
        )
        return [self._to_entity(kind, row) for row in result.scalars().all()]

    async def transition(
        self,
        kind: SuggestionKind,
        suggestion_id: UUID,
        status: SuggestionStatus,
        moderator_note: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        model = _SUGGESTION_MODELS[kind]
        result = await self.session.execute(
            update(model)
            .where(model.id == suggestion_id, model.status == SuggestionStatus.PENDING.value)
            .values(status=status.value, moderator_note=moderator_note, reviewed_at=reviewed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _to_entity(kind: SuggestionKind, model) -> Suggestion:
        common = dict(
            id=model.id,
            submitted_by_id=model.submitted_by_id,
            status=SuggestionStatus(model.status),
            moderator_note=model.moderator_note,
            reviewed_at=model.reviewed_at,
            created_at=model.created_at,
            submitted_by=UserProfileRepository._to_entity(model.submitted_by) if model.submitted_by else None,
        )
        if kind is SuggestionKind.BOOK:
            return BookSuggestion(
                **common,
                title=model.title,
                author_name=model.author_name,
                notes=model.notes,
                genre_ideas=extract_string_array(model.genre_ideas),
                prep_ideas=extract_string_array(model.prep_ideas),
            )
        book = BookRef(id=model.book.id, title=model.book.title, slug=model.book.slug) if model.book else None
        if kind is SuggestionKind.METADATA:
            return BookMetadataSuggestion(
                **common,
                book_id=model.book_id,
                suggested_synopsis=model.suggested_synopsis,
                suggested_genres=extract_string_array(model.suggested_genres),
                book=book,
            )
        return PrepSuggestion(
            **common,
            book_id=model.book_id,
            title=model.title,
            description=model.description,
            keyword_hints=extract_string_array(model.keyword_hints),
            book=book,
        )


# ---------------------------------------------------------------------------
# Reading Status Repository
# ---------------------------------------------------------------------------
class ReadingStatusRepository(IReadingStatusRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: UUID, book_id: UUID) -> Optional[ReadingStatus]:
        db_entry = await self._get_model(user_id, book_id)
        return self._to_entity(db_entry) if db_entry else None

    async def upsert(self, user_id: UUID, book_id: UUID, status: ReadingState) -> ReadingStatus:
        db_entry = await self._get_model(user_id, book_id)
        if db_entry is None:
            db_entry = ReadingStatusModel(id=uuid4(), user_id=user_id, book_id=book_id, status=status.value)
            self.session.add(db_entry)
        else:
            db_entry.status = status.value
            db_entry.updated_at = utcnow()
        await self.session.flush()
        return self._to_entity(db_entry)

    async def list_for_user(self, user_id: UUID, status: ReadingState) -> list[ReadingStatus]:
        result = await self.session.execute(
            select(ReadingStatusModel)
            .where(ReadingStatusModel.user_id == user_id, ReadingStatusModel.status == status.value)
            .order_by(ReadingStatusModel.updated_at.desc(), ReadingStatusModel.id)
            .execution_options(populate_existing=True)
        )
        db_entries = result.scalars().all()
        prep_counts = await _prep_counts(self.session, [entry.book_id for entry in db_entries])

        entries = []
        for db_entry in db_entries:
            entry = self._to_entity(db_entry)
            entry.book = BookRepository._to_entity(db_entry.book)
            entry.book.prep_count = prep_counts.get(db_entry.book_id, 0)
            entries.append(entry)
        return entries

    async def _get_model(self, user_id: UUID, book_id: UUID) -> Optional[ReadingStatusModel]:
        result = await self.session.execute(
            select(ReadingStatusModel).where(
                ReadingStatusModel.user_id == user_id, ReadingStatusModel.book_id == book_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: ReadingStatusModel) -> ReadingStatus:
        return ReadingStatus(
            id=model.id,
            user_id=model.user_id,
            book_id=model.book_id,
            status=ReadingState(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
