"""Dependency injection container."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.core.redis_client import get_redis_client
from app.core.security import claims_from_payload, decode_access_token
from app.domain.entities import UserProfile, UserRole
from app.domain.repositories import (
    IAuthorRepository,
    IBookRepository,
    ICacheBackend,
    IFeedbackRepository,
    IGenreRepository,
    IKeywordRepository,
    IPrepRepository,
    IPromptScoreRepository,
    IReadingStatusRepository,
    ISuggestionRepository,
    IUnitOfWork,
    IUserProfileRepository,
)
from app.domain.services import (
    IAdminCatalogService,
    ICatalogService,
    IFeedbackService,
    IModerationService,
    IProfileService,
    IReadingService,
    ISuggestionService,
)
from app.infrastructure.cache.memory import InMemoryTTLCache
from app.infrastructure.cache.redis_backend import RedisCacheBackend
from app.infrastructure.database.connection import get_db
from app.infrastructure.database.repository import (
    AuthorRepository,
    BookRepository,
    FeedbackRepository,
    GenreRepository,
    KeywordRepository,
    PrepRepository,
    PromptScoreRepository,
    ReadingStatusRepository,
    SuggestionRepository,
    UserProfileRepository,
)
from app.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from app.services.admin_service import AdminCatalogService
from app.services.catalog_mutations import CatalogMutations
from app.services.catalog_service import CatalogService
from app.services.feedback_service import FeedbackService
from app.services.moderation_service import ModerationService
from app.services.profile_service import ProfileService
from app.services.prompt_scores import PromptScoreService
from app.services.reading_service import ReadingService
from app.services.suggestion_service import SuggestionService

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
@lru_cache()
def _memory_cache() -> InMemoryTTLCache:
    return InMemoryTTLCache()


def get_cache_backend() -> ICacheBackend:
    """Return the configured cache backend."""
    if settings.cache_backend == "memory":
        return _memory_cache()
    elif settings.cache_backend == "redis":
        return RedisCacheBackend(get_redis_client())
    raise ValueError(f"Unknown cache backend: {settings.cache_backend}")


async def get_unit_of_work(session: AsyncSession = Depends(get_db)) -> IUnitOfWork:
    return SqlAlchemyUnitOfWork(session)


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserProfileRepository:
    return UserProfileRepository(session)


async def get_author_repository(session: AsyncSession = Depends(get_db)) -> IAuthorRepository:
    return AuthorRepository(session)


async def get_genre_repository(session: AsyncSession = Depends(get_db)) -> IGenreRepository:
    return GenreRepository(session)


async def get_keyword_repository(session: AsyncSession = Depends(get_db)) -> IKeywordRepository:
    return KeywordRepository(session)


async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_prep_repository(session: AsyncSession = Depends(get_db)) -> IPrepRepository:
    return PrepRepository(session)


async def get_feedback_repository(session: AsyncSession = Depends(get_db)) -> IFeedbackRepository:
    return FeedbackRepository(session)


async def get_score_repository(session: AsyncSession = Depends(get_db)) -> IPromptScoreRepository:
    return PromptScoreRepository(session)


async def get_suggestion_repository(session: AsyncSession = Depends(get_db)) -> ISuggestionRepository:
    return SuggestionRepository(session)


async def get_reading_repository(session: AsyncSession = Depends(get_db)) -> IReadingStatusRepository:
    return ReadingStatusRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_catalog_mutations(
    book_repo: IBookRepository = Depends(get_book_repository),
    author_repo: IAuthorRepository = Depends(get_author_repository),
    genre_repo: IGenreRepository = Depends(get_genre_repository),
    keyword_repo: IKeywordRepository = Depends(get_keyword_repository),
) -> CatalogMutations:
    return CatalogMutations(
        book_repository=book_repo,
        author_repository=author_repo,
        genre_repository=genre_repo,
        keyword_repository=keyword_repo,
    )


async def get_score_service(
    feedback_repo: IFeedbackRepository = Depends(get_feedback_repository),
    score_repo: IPromptScoreRepository = Depends(get_score_repository),
) -> PromptScoreService:
    return PromptScoreService(feedback_repository=feedback_repo, score_repository=score_repo)


async def get_profile_service(
    user_repo: IUserProfileRepository = Depends(get_user_repository),
    uow: IUnitOfWork = Depends(get_unit_of_work),
) -> IProfileService:
    return ProfileService(user_repository=user_repo, unit_of_work=uow)


async def get_reading_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    reading_repo: IReadingStatusRepository = Depends(get_reading_repository),
    uow: IUnitOfWork = Depends(get_unit_of_work),
) -> IReadingService:
    return ReadingService(book_repository=book_repo, reading_repository=reading_repo, unit_of_work=uow)


async def get_catalog_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    author_repo: IAuthorRepository = Depends(get_author_repository),
    genre_repo: IGenreRepository = Depends(get_genre_repository),
    keyword_repo: IKeywordRepository = Depends(get_keyword_repository),
    cache: ICacheBackend = Depends(get_cache_backend),
) -> ICatalogService:
    return CatalogService(
        book_repository=book_repo,
        author_repository=author_repo,
        genre_repository=genre_repo,
        keyword_repository=keyword_repo,
        cache=cache,
    )


async def get_feedback_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    prep_repo: IPrepRepository = Depends(get_prep_repository),
    feedback_repo: IFeedbackRepository = Depends(get_feedback_repository),
    score_repo: IPromptScoreRepository = Depends(get_score_repository),
    score_service: PromptScoreService = Depends(get_score_service),
    uow: IUnitOfWork = Depends(get_unit_of_work),
) -> IFeedbackService:
    return FeedbackService(
        book_repository=book_repo,
        prep_repository=prep_repo,
        feedback_repository=feedback_repo,
        score_repository=score_repo,
        score_service=score_service,
        unit_of_work=uow,
    )


async def get_suggestion_service(
    suggestion_repo: ISuggestionRepository = Depends(get_suggestion_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
    uow: IUnitOfWork = Depends(get_unit_of_work),
) -> ISuggestionService:
    return SuggestionService(
        suggestion_repository=suggestion_repo,
        book_repository=book_repo,
        unit_of_work=uow,
    )


async def get_moderation_service(
    suggestion_repo: ISuggestionRepository = Depends(get_suggestion_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
    prep_repo: IPrepRepository = Depends(get_prep_repository),
    mutations: CatalogMutations = Depends(get_catalog_mutations),
    uow: IUnitOfWork = Depends(get_unit_of_work),
    cache: ICacheBackend = Depends(get_cache_backend),
) -> IModerationService:
    return ModerationService(
        suggestion_repository=suggestion_repo,
        book_repository=book_repo,
        prep_repository=prep_repo,
        mutations=mutations,
        unit_of_work=uow,
        cache=cache,
    )


async def get_admin_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    prep_repo: IPrepRepository = Depends(get_prep_repository),
    mutations: CatalogMutations = Depends(get_catalog_mutations),
    uow: IUnitOfWork = Depends(get_unit_of_work),
    cache: ICacheBackend = Depends(get_cache_backend),
) -> IAdminCatalogService:
    return AdminCatalogService(
        book_repository=book_repo,
        prep_repository=prep_repo,
        mutations=mutations,
        unit_of_work=uow,
        cache=cache,
    )


# ---------------------------------------------------------------------------
# Auth dependencies
# ---------------------------------------------------------------------------
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    profile_service: IProfileService = Depends(get_profile_service),
) -> UserProfile:
    """Verify the bearer token and return the synced reader profile."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing authorization header")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid token")
    claims = claims_from_payload(payload)
    if claims is None:
        raise AuthenticationError("Invalid token")
    return await profile_service.ensure_profile(claims)


async def require_admin(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    if user.role is not UserRole.ADMIN:
        raise PermissionDeniedError("Admin access denied.")
    return user


async def require_curator(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    """Any role above MEMBER."""
    if user.role is UserRole.MEMBER:
        raise PermissionDeniedError("Administrator access required")
    return user
