"""Admin catalog management: books and their preps."""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.domain.entities import Book, BookFilters, Prep
from app.domain.repositories import (
    IBookRepository,
    ICacheBackend,
    IPrepRepository,
    IUnitOfWork,
)
from app.domain.services import IAdminCatalogService
from app.services.catalog_mutations import CatalogMutations
from app.services.catalog_service import invalidate_catalog_stats
from app.services.text import normalize_isbn, truncate_synopsis

logger = logging.getLogger(__name__)

_BOOK_SCALAR_FIELDS = ("title", "subtitle", "synopsis", "cover_image_url", "published_year", "isbn")


class AdminCatalogService(IAdminCatalogService):

    def __init__(
        self,
        book_repository: IBookRepository,
        prep_repository: IPrepRepository,
        mutations: CatalogMutations,
        unit_of_work: IUnitOfWork,
        cache: ICacheBackend,
    ):
        self.book_repository = book_repository
        self.prep_repository = prep_repository
        self.mutations = mutations
        self.unit_of_work = unit_of_work
        self.cache = cache

    async def list_books(
        self, search: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> tuple[list[Book], int]:
        skip = (page - 1) * page_size
        return await self.book_repository.search(BookFilters(search=search), skip=skip, limit=page_size)

    async def get_book(self, slug: str) -> Book:
        book = await self.book_repository.get_by_slug(slug)
        if book is None:
            raise NotFoundError("Book", slug, message="Book not found")
        return book

    async def create_book(
        self,
        title: str,
        author_id: Optional[UUID] = None,
        author_name: Optional[str] = None,
        subtitle: Optional[str] = None,
        slug: Optional[str] = None,
        synopsis: Optional[str] = None,
        cover_image_url: Optional[str] = None,
        published_year: Optional[int] = None,
        isbn: Optional[str] = None,
        genre_ids: Optional[list[UUID]] = None,
    ) -> Book:
        async with self.unit_of_work.transaction():
            resolved_author_id = await self.mutations.resolve_author_id(author_id, author_name)
            valid_genre_ids = await self.mutations.validate_genre_ids(genre_ids or [])
            book = await self.book_repository.create(
                Book(
                    id=uuid4(),
                    title=title.strip(),
                    subtitle=subtitle,
                    slug=await self.mutations.ensure_unique_slug("book", slug or title),
                    author_id=resolved_author_id,
                    synopsis=truncate_synopsis(synopsis, settings.synopsis_max_length),
                    cover_image_url=cover_image_url,
                    published_year=published_year,
                    isbn=normalize_isbn(isbn),
                )
            )
            if valid_genre_ids:
                await self.mutations.sync_book_genres(book.id, valid_genre_ids)

        await invalidate_catalog_stats(self.cache)
        logger.info("Admin created book %s", book.slug)
        return await self.get_book(book.slug)

    async def update_book(self, slug: str, **changes: Any) -> Book:
        """Apply a partial update; only keys present in ``changes`` are touched."""
        book = await self.get_book(slug)
        async with self.unit_of_work.transaction():
            for name in _BOOK_SCALAR_FIELDS:
                if name in changes:
                    setattr(book, name, changes[name])
            if "synopsis" in changes:
                book.synopsis = truncate_synopsis(changes["synopsis"], settings.synopsis_max_length)
            if "isbn" in changes:
                book.isbn = normalize_isbn(changes["isbn"])
            await self.book_repository.update(book)

            if changes.get("genre_ids") is not None:
                genre_ids = await self.mutations.validate_genre_ids(changes["genre_ids"])
                await self.mutations.sync_book_genres(book.id, genre_ids)

        await invalidate_catalog_stats(self.cache)
        logger.info("Admin updated book %s", slug)
        return await self.get_book(slug)

    async def create_prep(
        self,
        slug: str,
        heading: str,
        summary: str,
        watch_for: Optional[str] = None,
        color_hint: Optional[str] = None,
        keywords: Optional[list[str]] = None,
    ) -> Prep:
        book = await self.get_book(slug)
        async with self.unit_of_work.transaction():
            keyword_records = await self.mutations.upsert_keywords(keywords or [])
            prep = await self.prep_repository.create(
                Prep(
                    id=uuid4(),
                    book_id=book.id,
                    heading=heading,
                    summary=summary,
                    watch_for=watch_for,
                    color_hint=color_hint,
                ),
                [keyword.id for keyword in keyword_records],
            )

        await invalidate_catalog_stats(self.cache)
        logger.info("Admin created prep %s for book %s", prep.id, slug)
        return prep

    async def update_prep(
        self,
        slug: str,
        prep_id: UUID,
        heading: str,
        summary: str,
        watch_for: Optional[str] = None,
        color_hint: Optional[str] = None,
        keywords: Optional[list[str]] = None,
    ) -> Prep:
        book = await self.get_book(slug)
        prep = await self._get_prep(book.id, prep_id)
        prep.heading = heading
        prep.summary = summary
        prep.watch_for = watch_for
        prep.color_hint = color_hint
        async with self.unit_of_work.transaction():
            keyword_records = await self.mutations.upsert_keywords(keywords or [])
            updated = await self.prep_repository.update(prep, [keyword.id for keyword in keyword_records])

        logger.info("Admin updated prep %s", prep_id)
        return updated

    async def delete_prep(self, slug: str, prep_id: UUID) -> None:
        book = await self.get_book(slug)
        await self._get_prep(book.id, prep_id)
        async with self.unit_of_work.transaction():
            await self.prep_repository.delete(prep_id)

        await invalidate_catalog_stats(self.cache)
        logger.info("Admin deleted prep %s from book %s", prep_id, slug)

    async def _get_prep(self, book_id: UUID, prep_id: UUID) -> Prep:
        prep = await self.prep_repository.get_for_book(book_id, prep_id)
        if prep is None:
            raise NotFoundError("Prep", str(prep_id), message="Prep not found")
        return prep
