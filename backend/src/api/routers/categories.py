"""Category CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.category import Category
from models.user import User
from schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithCount,
)
from schemas.category_detail import CategoryDetail
from schemas.prompt import PromptSummary
from services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryWithCount])
async def list_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[CategoryWithCount]:
    """List the user's categories (sort_order, then name) with prompt counts."""
    return await category_service.list_with_counts(db, current_user.id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Category:
    """
    Create a category. The slug is derived from the name.

    Returns 409 if the user already has a category with the same slug.
    """
    return await category_service.create(db, current_user.id, data)


@router.get("/slug/{slug}", response_model=CategoryDetail)
async def get_category_by_slug(
    slug: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CategoryDetail:
    """Get a category by slug with its prompts, most recently updated first."""
    category, prompts = await category_service.get_by_slug(db, current_user.id, slug)
    return CategoryDetail(
        **CategoryResponse.model_validate(category).model_dump(),
        prompts=[PromptSummary.model_validate(p) for p in prompts],
    )


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Category:
    """
    Partially update a category. Renaming recomputes the slug.

    Returns 404 if the category doesn't exist or belongs to another user.
    Returns 409 if the new slug collides with another category.
    """
    return await category_service.update(db, current_user.id, category_id, data)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a category. Its prompts are kept with category_id cleared."""
    await category_service.delete(db, current_user.id, category_id)
