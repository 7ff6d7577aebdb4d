"""
Shared validation functions for Pydantic schemas.

This module contains validators used across multiple entity schemas (categories,
collections, prompts, tags). Entity-specific validators remain in their modules.
"""
from core.config import get_settings
from services.utils import normalize_tag_name


def validate_required_text(value: str, field_name: str) -> str:
    """Reject empty or whitespace-only values for required text fields."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value


def validate_and_normalize_tag(tag: str) -> str:
    """
    Normalize and validate a single tag.

    Args:
        tag: The tag string to validate.

    Returns:
        The normalized tag (lowercase, trimmed).

    Raises:
        ValueError: If tag is empty or too long.
    """
    normalized = normalize_tag_name(tag)
    if not normalized:
        raise ValueError("Tag name cannot be empty")
    max_length = get_settings().max_name_length
    if len(normalized) > max_length:
        raise ValueError(f"Tag name exceeds maximum length of {max_length} characters")
    return normalized


def validate_and_normalize_tags(tags: list[str]) -> list[str]:
    """
    Normalize and validate a list of tags.

    Args:
        tags: List of tag strings to validate.

    Returns:
        List of normalized, de-duplicated tags in first-seen order, with empty
        strings filtered out.

    Raises:
        ValueError: If any tag is too long.
    """
    normalized: list[str] = []
    for tag in tags:
        if not tag.strip():
            continue  # Skip empty tags silently
        name = validate_and_normalize_tag(tag)
        if name not in normalized:
            normalized.append(name)
    return normalized


def validate_max_length(value: str | None, field_name: str, max_length: int) -> str | None:
    """Validate that an optional text value doesn't exceed max_length."""
    if value is not None and len(value) > max_length:
        raise ValueError(
            f"{field_name} exceeds maximum length of {max_length:,} characters "
            f"(got {len(value):,} characters).",
        )
    return value


def validate_title_length(title: str | None) -> str | None:
    """Validate that title doesn't exceed maximum length."""
    return validate_max_length(title, "Title", get_settings().max_title_length)


def validate_description_length(description: str | None) -> str | None:
    """Validate that description doesn't exceed maximum length."""
    return validate_max_length(
        description, "Description", get_settings().max_description_length,
    )


def validate_content_length(content: str | None) -> str | None:
    """Validate that content doesn't exceed maximum length."""
    return validate_max_length(content, "Content", get_settings().max_content_length)


def validate_name_length(name: str | None) -> str | None:
    """Validate that a category/collection name doesn't exceed maximum length."""
    return validate_max_length(name, "Name", get_settings().max_name_length)
