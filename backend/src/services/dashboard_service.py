"""Per-user overview counters for the dashboard."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from models.prompt import Prompt
from schemas.dashboard import DashboardResponse
from schemas.prompt import PromptSummary
from services.category_service import category_service
from services.prompt_service import prompt_service

RECENT_PROMPTS_LIMIT = 5


async def get_dashboard(db: AsyncSession, user_id: UUID) -> DashboardResponse:
    """Count the user's prompts, categories and favorites, plus the most recently updated prompts."""
    prompt_count = await prompt_service.count_user_items(db, user_id)
    favorite_count = await prompt_service.count_user_items(
        db, user_id, Prompt.is_favorite.is_(True),
    )
    category_count = await category_service.count_user_items(db, user_id)
    recent, _ = await prompt_service.list_prompts(
        db, user_id, page=1, limit=RECENT_PROMPTS_LIMIT, sort="updatedAt",
    )
    return DashboardResponse(
        prompt_count=prompt_count,
        category_count=category_count,
        favorite_count=favorite_count,
        recent_prompts=[PromptSummary.model_validate(p) for p in recent],
    )
