"""Pydantic schemas for tag endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import field_validator

from schemas.base import CamelModel, CamelORMModel
from schemas.validators import validate_and_normalize_tag, validate_and_normalize_tags


class TagCreate(CamelModel):
    """Schema for get-or-create of a tag by name."""

    name: str

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Normalize and validate the tag name."""
        return validate_and_normalize_tag(v)


class TagResponse(CamelORMModel):
    """Schema for a single tag."""

    id: UUID
    name: str
    created_at: datetime


class TagWithCount(TagResponse):
    """Tag list item including the number of prompts using it."""

    prompt_count: int = 0


class PromptTagsUpdate(CamelModel):
    """Schema for replacing the full tag set of a prompt."""

    tags: list[str]

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Normalize and validate tags."""
        return validate_and_normalize_tags(v)
