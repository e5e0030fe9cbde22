"""Tests for catalog write primitives."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.exceptions import ValidationError
from app.domain.entities import Author, Genre, Keyword
from app.services.catalog_mutations import CatalogMutations


class TestCatalogMutations:

    def setup_method(self):
        self.book_repo = AsyncMock()
        self.author_repo = AsyncMock()
        self.genre_repo = AsyncMock()
        self.keyword_repo = AsyncMock()
        self.mutations = CatalogMutations(
            book_repository=self.book_repo,
            author_repository=self.author_repo,
            genre_repository=self.genre_repo,
            keyword_repository=self.keyword_repo,
        )

    @pytest.mark.asyncio
    async def test_unique_slug_appends_counter(self):
        taken = {"dune", "dune-2"}
        self.book_repo.slug_exists.side_effect = lambda slug: slug in taken

        assert await self.mutations.ensure_unique_slug("book", "Dune") == "dune-3"

    @pytest.mark.asyncio
    async def test_unique_slug_uses_repository_of_entity_type(self):
        self.genre_repo.slug_exists.return_value = False

        assert await self.mutations.ensure_unique_slug("genre", "Hard SF") == "hard-sf"
        self.book_repo.slug_exists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_id_passes_through(self):
        author_id = uuid4()
        assert await self.mutations.resolve_author_id(author_id=author_id) == author_id
        self.author_repo.get_by_slug.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_name_required(self):
        with pytest.raises(ValidationError) as exc_info:
            await self.mutations.resolve_author_id(author_name="   ")
        assert exc_info.value.field == "authorName"

    @pytest.mark.asyncio
    async def test_author_reused_case_insensitively(self):
        existing = Author(id=uuid4(), name="Octavia E. Butler", slug="octavia-e-butler")
        self.author_repo.get_by_slug.return_value = existing

        assert await self.mutations.resolve_author_id(author_name="octavia e. butler") == existing.id
        self.author_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_created_on_next_free_slug(self):
        other = Author(id=uuid4(), name="John Smith!", slug="john-smith")
        self.author_repo.get_by_slug.side_effect = lambda slug: other if slug == "john-smith" else None
        self.author_repo.create.side_effect = lambda author: author

        await self.mutations.resolve_author_id(author_name="John Smith")

        created = self.author_repo.create.await_args.args[0]
        assert created.slug == "john-smith-2"
        assert created.name == "John Smith"

    @pytest.mark.asyncio
    async def test_upsert_keywords_creates_and_renames(self):
        existing = Keyword(id=uuid4(), name="pacing", slug="pacing")
        self.keyword_repo.get_by_slug.side_effect = lambda slug: existing if slug == "pacing" else None
        self.keyword_repo.rename.return_value = Keyword(id=existing.id, name="Pacing", slug="pacing")
        self.keyword_repo.create.side_effect = lambda keyword: keyword

        keywords = await self.mutations.upsert_keywords(["Pacing", " Tone ", "", "Pacing"])

        assert [k.name for k in keywords] == ["Pacing", "Tone"]
        self.keyword_repo.rename.assert_awaited_once_with(existing.id, "Pacing")

    @pytest.mark.asyncio
    async def test_resolve_existing_genres_drops_unknown(self):
        known = Genre(id=uuid4(), name="Fantasy", slug="fantasy")
        self.genre_repo.get_by_slugs.return_value = [known]

        assert await self.mutations.resolve_existing_genres(["fantasy", "nope"]) == [known]

    @pytest.mark.asyncio
    async def test_ensure_genres_creates_missing(self):
        self.genre_repo.get_by_slug.return_value = None
        self.genre_repo.slug_exists.return_value = False
        self.genre_repo.create.side_effect = lambda genre: genre

        genres = await self.mutations.ensure_genres_from_names(["Cozy Mystery"])

        assert genres[0].slug == "cozy-mystery"

    @pytest.mark.asyncio
    async def test_validate_genre_ids_is_strict(self):
        first, second = uuid4(), uuid4()
        self.genre_repo.get_by_ids.return_value = [Genre(id=first, name="A", slug="a")]

        with pytest.raises(ValidationError) as exc_info:
            await self.mutations.validate_genre_ids([first, second])
        assert exc_info.value.field == "genreIds"

    @pytest.mark.asyncio
    async def test_validate_genre_ids_dedupes(self):
        genre_id = uuid4()
        self.genre_repo.get_by_ids.return_value = [Genre(id=genre_id, name="A", slug="a")]

        assert await self.mutations.validate_genre_ids([genre_id, genre_id]) == [genre_id]
