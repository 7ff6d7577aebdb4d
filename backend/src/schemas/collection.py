"""Pydantic schemas for collection endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import field_validator

from schemas.base import CamelModel, CamelORMModel
from schemas.prompt import PromptSummary
from schemas.validators import (
    validate_description_length,
    validate_name_length,
    validate_required_text,
)


class CollectionCreate(CamelModel):
    """Schema for creating a collection."""

    name: str
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Require a non-blank name within the length limit."""
        validate_required_text(v, "Name")
        return validate_name_length(v.strip())

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)


class CollectionUpdate(CamelModel):
    """Schema for partially updating a collection."""

    name: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        """Require a non-blank name if one is provided."""
        if v is None:
            return v
        validate_required_text(v, "Name")
        return validate_name_length(v.strip())

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)


class CollectionResponse(CamelORMModel):
    """Schema for collection responses."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class CollectionWithCount(CollectionResponse):
    """Collection list item including the number of member prompts."""

    prompt_count: int = 0


class CollectionDetail(CollectionResponse):
    """Collection with its member prompts in ascending sort_order."""

    prompts: list[PromptSummary]


class CollectionMemberAdd(CamelModel):
    """Schema for adding a prompt to a collection."""

    prompt_id: UUID
    sort_order: int | None = None


class CollectionReorder(CamelModel):
    """Schema for reordering members: prompt ids in their new order."""

    prompt_ids: list[UUID]
