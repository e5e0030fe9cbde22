"""Public catalog routes (books, genres, authors, stats)."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.api.schemas import (
    AuthorResponse,
    BookDetailResponse,
    BookListItem,
    BookListResponse,
    BookPrepsResponse,
    CatalogStatsResponse,
    GenreResponse,
    Pagination,
    PrepResponse,
)
from app.core.dependencies import get_catalog_service
from app.domain.entities import BookFilters
from app.domain.services import ICatalogService
from app.services.text import extract_string_array

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["catalog"])


def _csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return extract_string_array(value.split(","))


@router.get("/stats", response_model=CatalogStatsResponse)
async def get_stats(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> CatalogStatsResponse:
    """Catalog counts and publication year bounds (cached)."""
    return CatalogStatsResponse.model_validate(await catalog_service.get_stats())


@router.get("/genres", response_model=list[GenreResponse])
async def list_genres(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> list[GenreResponse]:
    genres = await catalog_service.list_genres()
    return [GenreResponse.model_validate(g) for g in genres]


@router.get("/authors", response_model=list[AuthorResponse])
async def list_authors(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> list[AuthorResponse]:
    authors = await catalog_service.list_authors()
    return [AuthorResponse.model_validate(a) for a in authors]


@router.get("/books", response_model=BookListResponse)
async def list_books(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
    search: Optional[str] = None,
    author: Optional[str] = None,
    genres: Annotated[Optional[str], Query(description="Comma separated genre slugs")] = None,
    prep: Annotated[Optional[str], Query(description="Comma separated prep keyword slugs")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=50)] = 20,
) -> BookListResponse:
    """Search the catalog with optional author, genre and keyword filters."""
    filters = BookFilters(
        search=search,
        author=author.strip() if author and author.strip() else None,
        genre_slugs=_csv(genres),
        keyword_slugs=_csv(prep),
    )
    books, total = await catalog_service.list_books(filters, page=page, page_size=page_size)
    return BookListResponse(
        pagination=Pagination.build(total, page, page_size),
        results=[BookListItem.from_entity(b) for b in books],
    )


@router.get("/books/{slug}", response_model=BookDetailResponse)
async def get_book(
    slug: str,
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookDetailResponse:
    book = await catalog_service.get_book(slug)
    return BookDetailResponse.from_entity(book)


@router.get("/books/{slug}/preps", response_model=BookPrepsResponse)
async def list_book_preps(
    slug: str,
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookPrepsResponse:
    preps = await catalog_service.list_preps(slug)
    return BookPrepsResponse(slug=slug, preps=[PrepResponse.from_entity(p) for p in preps])
