"""Pydantic schemas for prompt and prompt version endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, computed_field, field_validator, model_validator

from schemas.base import CamelModel, CamelORMModel
from schemas.category import CategorySummary
from schemas.validators import (
    validate_and_normalize_tags,
    validate_content_length,
    validate_description_length,
    validate_required_text,
    validate_title_length,
)
from services.utils import estimate_tokens

DEFAULT_MODEL_TARGET = "universal"


def _blank_to_none(v: Any) -> Any:
    """Treat an empty category id as "no category"."""
    if v == "":
        return None
    return v


def _loaded(data: Any, attribute: str) -> Any:
    """
    Return a relationship value only if SQLAlchemy already loaded it.

    Reading an unloaded relationship would trigger a lazy load, which is not
    allowed outside the async context.
    """
    return data.__dict__.get(attribute)


def _category_summary(data: Any) -> CategorySummary | None:
    category = _loaded(data, "category")
    return CategorySummary.model_validate(category) if category is not None else None


class PromptCreate(CamelModel):
    """Schema for creating a prompt together with its first version."""

    title: str
    content: str
    description: str | None = None
    category_id: UUID | None = None
    model_target: str = DEFAULT_MODEL_TARGET
    system_prompt: str | None = None
    tags: list[str] | None = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Require a non-blank title within the length limit."""
        validate_required_text(v, "Title")
        return validate_title_length(v)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        """Require non-blank content within the length limit."""
        validate_required_text(v, "Content")
        return validate_content_length(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category(cls, v: Any) -> Any:
        """Normalize an empty category id to None."""
        return _blank_to_none(v)

    @field_validator("model_target", mode="before")
    @classmethod
    def default_model_target(cls, v: Any) -> Any:
        """Fall back to the universal target when null or blank."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_MODEL_TARGET
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize and validate tags; an explicit null means no tags."""
        if v is None:
            return []
        return validate_and_normalize_tags(v)


class PromptUpdate(CamelModel):
    """
    Schema for sparse prompt updates.

    Content fields (title, description) advance updated_at.
    Metadata fields (is_favorite, is_pinned, category_id) do not.
    Any other keys in the request body are ignored.
    """

    title: str | None = None
    description: str | None = None
    is_favorite: bool | None = None
    is_pinned: bool | None = None
    category_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        """Require a non-blank title if one is provided."""
        if v is None:
            return v
        validate_required_text(v, "Title")
        return validate_title_length(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category(cls, v: Any) -> Any:
        """Normalize an empty category id to None."""
        return _blank_to_none(v)


class PromptVersionCreate(CamelModel):
    """Schema for appending a version. Every field is optional."""

    version_label: str | None = None
    model_target: str | None = None
    content: str | None = None
    system_prompt: str | None = None
    notes: str | None = None
    variables: Any | None = None

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str | None) -> str | None:
        """Validate content length."""
        return validate_content_length(v)


class PromptVersionUpdate(CamelModel):
    """Schema for sparse version updates. Omitted fields are left unchanged."""

    version_label: str | None = None
    model_target: str | None = None
    content: str | None = None
    system_prompt: str | None = None
    notes: str | None = None
    variables: Any | None = None
    is_active: bool | None = None

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str | None) -> str | None:
        """Validate content length."""
        return validate_content_length(v)


class PromptVersionResponse(CamelORMModel):
    """Schema for a single prompt version."""

    id: UUID
    prompt_id: UUID
    version_label: str
    model_target: str
    content: str
    system_prompt: str | None
    notes: str | None
    variables: Any | None
    is_active: bool
    created_at: datetime

    @computed_field(alias="tokenEstimate")  # type: ignore[prop-decorator]
    @property
    def token_estimate(self) -> int:
        """Approximate token count of content plus system prompt."""
        return estimate_tokens(self.content) + estimate_tokens(self.system_prompt)


class _PromptBase(CamelORMModel):
    """Fields shared by full prompt responses and prompt summaries."""

    id: UUID
    title: str
    description: str | None
    category_id: UUID | None
    category: CategorySummary | None = None
    is_favorite: bool
    is_pinned: bool
    usage_count: int
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PromptResponse(_PromptBase):
    """
    Schema for the full prompt aggregate (category, all versions, tags).

    Note: Uses model_validator to read relationships only when they were eagerly
    loaded, and to flatten tag_objects into a list of tag names.
    """

    versions: list[PromptVersionResponse] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def extract_from_sqlalchemy(cls, data: Any) -> Any:
        """Extract fields from a SQLAlchemy Prompt, touching only loaded relationships."""
        if not hasattr(data, "_sa_instance_state"):
            return data
        field_names = set(cls.model_fields.keys()) - {"tags", "category", "versions"}
        data_dict = {key: getattr(data, key) for key in field_names if hasattr(data, key)}
        data_dict["category"] = _category_summary(data)
        data_dict["versions"] = [
            PromptVersionResponse.model_validate(version)
            for version in _loaded(data, "versions") or []
        ]
        tag_objects = _loaded(data, "tag_objects") or []
        data_dict["tags"] = sorted(tag.name for tag in tag_objects)
        return data_dict


class PromptSummary(_PromptBase):
    """
    Schema for prompt summaries (search results, collection and category pages).

    Carries only the most recent version instead of the full version list.
    """

    latest_version: PromptVersionResponse | None = None

    @model_validator(mode="before")
    @classmethod
    def extract_from_sqlalchemy(cls, data: Any) -> Any:
        """Extract fields from a SQLAlchemy Prompt and pick its newest version."""
        if not hasattr(data, "_sa_instance_state"):
            return data
        field_names = set(cls.model_fields.keys()) - {"tags", "category", "latest_version"}
        data_dict = {key: getattr(data, key) for key in field_names if hasattr(data, key)}
        data_dict["category"] = _category_summary(data)
        versions = _loaded(data, "versions") or []
        # versions relationship is ordered by (created_at, id) ascending
        data_dict["latest_version"] = (
            PromptVersionResponse.model_validate(versions[-1]) if versions else None
        )
        tag_objects = _loaded(data, "tag_objects") or []
        data_dict["tags"] = sorted(tag.name for tag in tag_objects)
        return data_dict


class PromptListResponse(CamelModel):
    """Schema for paginated prompt list responses."""

    prompts: list[PromptResponse]
    total: int  # Total count of prompts matching the filters (before pagination)
    page: int
    total_pages: int


class SearchResponse(CamelModel):
    """Schema for quick search results."""

    results: list[PromptSummary]
