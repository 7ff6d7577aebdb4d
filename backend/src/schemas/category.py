"""Pydantic schemas for category endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import field_validator

from schemas.base import CamelModel, CamelORMModel
from schemas.validators import (
    validate_description_length,
    validate_name_length,
    validate_required_text,
)


class CategoryCreate(CamelModel):
    """Schema for creating a category. The slug is always derived from the name."""

    name: str
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    sort_order: int = 0

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


class CategoryUpdate(CamelModel):
    """Schema for partially updating a category. Omitted fields are left unchanged."""

    name: str | None = None
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    sort_order: int | None = None

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


class CategoryResponse(CamelORMModel):
    """Schema for category responses."""

    id: UUID
    name: str
    slug: str
    description: str | None
    color: str | None
    icon: str | None
    sort_order: int
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryResponse):
    """Category list item including the number of prompts filed under it."""

    prompt_count: int = 0


class CategorySummary(CamelORMModel):
    """Compact category embedded in prompt responses."""

    id: UUID
    name: str
    slug: str
    color: str | None
    icon: str | None
