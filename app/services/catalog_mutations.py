"""Catalog write primitives shared by admin CRUD and suggestion approval.

None of these commit; callers run them inside a unit of work.  Slug probing
is not locked, so two concurrent writers can race for the same slug and the
loser fails on the unique constraint.
"""

import logging
from typing import Literal, Optional
from uuid import UUID, uuid4

from app.core.exceptions import ValidationError
from app.domain.entities import Author, Genre, Keyword
from app.domain.repositories import (
    IAuthorRepository,
    IBookRepository,
    IGenreRepository,
    IKeywordRepository,
)
from app.services.text import slugify

logger = logging.getLogger(__name__)

SlugEntity = Literal["book", "author", "genre"]


def _clean_names(names: list[str]) -> list[str]:
    """Trimmed, non-empty, first-occurrence-ordered unique names."""
    return list(dict.fromkeys(name.strip() for name in names if name and name.strip()))


class CatalogMutations:

    def __init__(
        self,
        book_repository: IBookRepository,
        author_repository: IAuthorRepository,
        genre_repository: IGenreRepository,
        keyword_repository: IKeywordRepository,
    ):
        self.book_repository = book_repository
        self.author_repository = author_repository
        self.genre_repository = genre_repository
        self.keyword_repository = keyword_repository

    async def ensure_unique_slug(self, entity_type: SlugEntity, raw_value: str) -> str:
        """Slugify ``raw_value`` and append -2, -3, ... until no row of that type uses it."""
        repositories = {
            "book": self.book_repository,
            "author": self.author_repository,
            "genre": self.genre_repository,
        }
        repository = repositories[entity_type]
        base_slug = slugify(raw_value)
        candidate = base_slug
        suffix = 2
        while await repository.slug_exists(candidate):
            candidate = f"{base_slug}-{suffix}"
            suffix += 1
        return candidate

    async def resolve_author_id(
        self, author_id: Optional[UUID] = None, author_name: Optional[str] = None
    ) -> UUID:
        """Return ``author_id`` as given, or find-or-create an author by name.

        Walks the slug chain (``name``, ``name-2``, ...) and reuses the first
        author whose name matches case-insensitively; otherwise creates one on
        the first free slug.
        """
        if author_id:
            return author_id
        if not author_name or not author_name.strip():
            raise ValidationError("Author name required.", field="authorName")

        name = author_name.strip()
        base_slug = slugify(name)
        slug = base_slug
        suffix = 2
        while True:
            existing = await self.author_repository.get_by_slug(slug)
            if existing is None:
                break
            if existing.name.lower() == name.lower():
                return existing.id
            slug = f"{base_slug}-{suffix}"
            suffix += 1

        author = await self.author_repository.create(Author(id=uuid4(), name=name, slug=slug))
        logger.info("Created author %s (%s)", author.name, author.slug)
        return author.id

    async def upsert_keywords(self, names: list[str]) -> list[Keyword]:
        keywords: dict[UUID, Keyword] = {}
        for name in _clean_names(names):
            slug = slugify(name)
            existing = await self.keyword_repository.get_by_slug(slug)
            if existing is None:
                keyword = await self.keyword_repository.create(Keyword(id=uuid4(), name=name, slug=slug))
            else:
                keyword = await self.keyword_repository.rename(existing.id, name)
            keywords[keyword.id] = keyword
        return list(keywords.values())

    async def ensure_genres_from_names(self, names: list[str]) -> list[Genre]:
        """Existing genres by slug, creating any that are missing."""
        genres: dict[UUID, Genre] = {}
        for name in _clean_names(names):
            genre = await self.genre_repository.get_by_slug(slugify(name))
            if genre is None:
                slug = await self.ensure_unique_slug("genre", name)
                genre = await self.genre_repository.create(Genre(id=uuid4(), name=name, slug=slug))
                logger.info("Created genre %s", genre.slug)
            genres[genre.id] = genre
        return list(genres.values())

    async def resolve_existing_genres(self, slugs: list[str]) -> list[Genre]:
        """Best-effort lookup: unknown slugs are dropped without error."""
        cleaned = _clean_names(slugs)
        genres = await self.genre_repository.get_by_slugs(cleaned)
        if len(genres) != len(cleaned):
            logger.debug("Ignoring %d unknown genre slug(s)", len(cleaned) - len(genres))
        return genres

    async def validate_genre_ids(self, genre_ids: list[UUID]) -> list[UUID]:
        """Strict lookup: every id must exist."""
        unique_ids = list(dict.fromkeys(genre_ids))
        if not unique_ids:
            return []
        genres = await self.genre_repository.get_by_ids(unique_ids)
        if len(genres) != len(unique_ids):
            raise ValidationError("One or more genres do not exist.", field="genreIds")
        return unique_ids

    async def sync_book_genres(self, book_id: UUID, genre_ids: list[UUID]) -> None:
        await self.book_repository.set_genres(book_id, genre_ids)
