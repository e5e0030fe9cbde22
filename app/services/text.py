"""String normalization helpers shared by catalog mutations and moderation."""

import re
from typing import Any, Optional

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_REPEATED_DASH = re.compile(r"-{2,}")
_NON_ISBN = re.compile(r"[^0-9Xx]")


def slugify(value: str) -> str:
    """Lowercase, hyphen-separated ``[a-z0-9]`` slug; ``"item"`` when nothing is left."""
    slug = _NON_SLUG.sub("-", value.lower().strip())
    slug = _REPEATED_DASH.sub("-", slug.strip("-"))
    return slug or "item"


def tokenize_search(value: str) -> list[str]:
    return _NON_SLUG.sub(" ", value.lower()).split()


def truncate_synopsis(value: Optional[str], max_length: int) -> Optional[str]:
    if not value:
        return None
    return value[:max_length]


def extract_string_array(value: Any) -> list[str]:
    """Trimmed non-empty strings from a JSON list; anything else yields []."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_isbn(value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return None
    cleaned = _NON_ISBN.sub("", value).upper()
    return cleaned or None
