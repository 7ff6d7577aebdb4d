"""Tag endpoints."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.tag import Tag
from models.user import User
from schemas.tag import TagCreate, TagResponse, TagWithCount
from services.tag_service import get_or_create_tag, get_user_tags_with_counts

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagWithCount])
async def list_tags(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[TagWithCount]:
    """Get all tags for the current user with their prompt counts, sorted by name."""
    return await get_user_tags_with_counts(db, current_user.id)


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Tag already existed"}},
)
async def create_tag(
    data: TagCreate,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Tag:
    """
    Get or create a tag by normalized (trimmed, lowercase) name.

    Returns 201 for a new tag and 200 with the existing row otherwise.
    """
    tag, created = await get_or_create_tag(db, current_user.id, data.name)
    if not created:
        response.status_code = status.HTTP_200_OK
    return tag
