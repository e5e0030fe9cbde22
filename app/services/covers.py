"""Cover image URL resolution."""

from typing import Literal, Optional

from app.core.config import settings
from app.domain.entities import Book
from app.services.text import normalize_isbn

CoverSize = Literal["S", "M", "L"]


def build_open_library_cover_url(isbn: Optional[str], size: CoverSize = "M") -> Optional[str]:
    normalized = normalize_isbn(isbn)
    if not normalized:
        return None
    return f"{settings.cover_base_url.rstrip('/')}/{normalized}-{size}.jpg?default=false"


def resolve_cover_image_url(book: Book, size: CoverSize = "M") -> Optional[str]:
    """An explicitly stored cover wins over the ISBN-derived one."""
    if book.cover_image_url:
        return book.cover_image_url
    return build_open_library_cover_url(book.isbn, size)
