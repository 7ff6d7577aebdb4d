"""Quick search endpoint used by the command palette."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.prompt import PromptSummary, SearchResponse
from services.search_service import search_prompts

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(default="", description="Case-insensitive substring to find"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SearchResponse:
    """
    Search titles, descriptions and version content.

    Returns at most 20 prompts, most recently updated first, each with its
    category and latest version. A blank query returns no results.
    """
    prompts = await search_prompts(db, current_user.id, q)
    return SearchResponse(results=[PromptSummary.model_validate(p) for p in prompts])
