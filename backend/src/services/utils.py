"""Shared utility functions for service layer."""
import math
import re

_SLUG_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_SEPARATORS = re.compile(r"[\s_]+", re.ASCII)
_SLUG_EDGE_HYPHENS = re.compile(r"^-+|-+$")

# Rough characters-per-token ratio used for size hints in the UI
CHARS_PER_TOKEN = 4


def escape_like(value: str) -> str:
    r"""
    Escape special LIKE characters for safe use in LIKE/ILIKE patterns.

    LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so they match literally. Callers must pass
    escape="\\" to ilike() since SQLite has no default escape character.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def slugify(text: str) -> str:
    """
    Convert a name into a URL-safe, lowercase, hyphenated slug.

    Characters other than ASCII letters, digits, underscores, whitespace and hyphens
    are dropped; runs of whitespace/underscores become a single hyphen; leading and
    trailing hyphens are trimmed.

    >>> slugify("  Code Review & Refactoring ")
    'code-review-refactoring'
    """
    slug = _SLUG_STRIP.sub("", text.lower())
    slug = _SLUG_SEPARATORS.sub("-", slug)
    return _SLUG_EDGE_HYPHENS.sub("", slug)


def estimate_tokens(text: str | None) -> int:
    """Estimate the token count of a text (ceil of chars / 4)."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def normalize_tag_name(name: str) -> str:
    """Normalize a tag name (trimmed, lowercase)."""
    return name.strip().lower()
