"""Pydantic schemas for the dashboard endpoint."""
from schemas.base import CamelModel
from schemas.prompt import PromptSummary


class DashboardResponse(CamelModel):
    """Per-user counters and the most recently updated prompts."""

    prompt_count: int
    category_count: int
    favorite_count: int
    recent_prompts: list[PromptSummary]
