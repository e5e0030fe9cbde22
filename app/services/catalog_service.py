"""Public catalog reads and the cached catalog stats."""

import logging
from typing import Any

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.domain.entities import Author, Book, BookFilters, Genre, Keyword, Prep
from app.domain.repositories import (
    IAuthorRepository,
    IBookRepository,
    ICacheBackend,
    IGenreRepository,
    IKeywordRepository,
)
from app.domain.services import ICatalogService

logger = logging.getLogger(__name__)

CATALOG_STATS_CACHE_KEY = "catalog:stats"


async def invalidate_catalog_stats(cache: ICacheBackend) -> None:
    """Drop cached stats after a committed catalog change.

    The write already succeeded, so a cache outage only costs staleness
    until the TTL runs out.
    """
    try:
        await cache.invalidate(CATALOG_STATS_CACHE_KEY)
    except Exception as exc:
        logger.warning("Failed to invalidate catalog stats cache: %s", exc)


class CatalogService(ICatalogService):

    def __init__(
        self,
        book_repository: IBookRepository,
        author_repository: IAuthorRepository,
        genre_repository: IGenreRepository,
        keyword_repository: IKeywordRepository,
        cache: ICacheBackend,
    ):
        self.book_repository = book_repository
        self.author_repository = author_repository
        self.genre_repository = genre_repository
        self.keyword_repository = keyword_repository
        self.cache = cache

    async def list_books(
        self, filters: BookFilters, page: int = 1, page_size: int = 20
    ) -> tuple[list[Book], int]:
        skip = (page - 1) * page_size
        return await self.book_repository.search(filters, skip=skip, limit=page_size)

    async def get_book(self, slug: str) -> Book:
        book = await self.book_repository.get_by_slug(slug)
        if book is None:
            raise NotFoundError("Book", slug, message="Book not found")
        return book

    async def list_preps(self, slug: str) -> list[Prep]:
        book = await self.get_book(slug)
        return book.preps

    async def list_genres(self) -> list[Genre]:
        return await self.genre_repository.list_all()

    async def list_authors(self) -> list[Author]:
        return await self.author_repository.list_all()

    async def list_keywords(self) -> list[Keyword]:
        return await self.keyword_repository.list_all()

    async def get_stats(self) -> dict[str, Any]:
        cached = await self.cache.get(CATALOG_STATS_CACHE_KEY)
        if cached is not None:
            return cached

        stats = await self.book_repository.stats()
        value = {
            "books": stats.books,
            "authors": stats.authors,
            "preps": stats.preps,
            "years": {"earliest": stats.earliest_year, "latest": stats.latest_year},
        }
        await self.cache.set(CATALOG_STATS_CACHE_KEY, value, settings.catalog_stats_ttl_seconds)
        logger.info("Catalog stats refreshed: %s books, %s preps", stats.books, stats.preps)
        return value
