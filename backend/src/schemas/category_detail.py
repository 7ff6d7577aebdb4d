"""Pydantic schema for the category detail page."""
from pydantic import Field

from schemas.category import CategoryResponse
from schemas.prompt import PromptSummary


class CategoryDetail(CategoryResponse):
    """Category with its prompts, most recently updated first."""

    prompts: list[PromptSummary] = Field(default_factory=list)
