"""Prompt CRUD endpoints, including copy, tag replacement and versions."""
import math
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.prompt import Prompt
from models.prompt_version import PromptVersion
from models.user import User
from schemas.prompt import (
    PromptCreate,
    PromptListResponse,
    PromptResponse,
    PromptUpdate,
    PromptVersionCreate,
    PromptVersionResponse,
    PromptVersionUpdate,
)
from schemas.tag import PromptTagsUpdate
from services.prompt_service import prompt_service

router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=PromptListResponse)
async def list_prompts(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Page size"),
    category: UUID | None = Query(default=None, description="Only prompts in this category"),
    favorite: bool = Query(default=False, description="Only favorite prompts"),
    tag: str | None = Query(default=None, description="Only prompts with this tag name"),
    sort: Literal["updatedAt", "title", "usageCount"] = Query(
        default="updatedAt",
        description="updatedAt (newest first), title (A-Z) or usageCount (most used first)",
    ),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PromptListResponse:
    """
    List prompts with filters and offset pagination.

    Each prompt carries its category, all versions (oldest first) and tags.
    """
    prompts, total = await prompt_service.list_prompts(
        db,
        current_user.id,
        page=page,
        limit=limit,
        category_id=category,
        favorite=favorite,
        tag=tag,
        sort=sort,
    )
    return PromptListResponse(
        prompts=[PromptResponse.model_validate(p) for p in prompts],
        total=total,
        page=page,
        total_pages=math.ceil(total / limit),
    )


@router.post("", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    data: PromptCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Prompt:
    """
    Create a prompt with its first version ("v1").

    Returns 400 if title or content is missing.
    Returns 404 if categoryId refers to a category the user doesn't own.
    """
    return await prompt_service.create(db, current_user.id, data)


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Prompt:
    """
    Get a prompt with its category, versions and tags.

    Each read counts as one use; the new usageCount shows on the next read.
    """
    return await prompt_service.get_and_track_usage(db, current_user.id, prompt_id)


@router.patch("/{prompt_id}", response_model=PromptResponse)
async def update_prompt(
    prompt_id: UUID,
    data: PromptUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Prompt:
    """
    Sparse update of a prompt.

    title/description advance updatedAt; isFavorite/isPinned/categoryId don't.
    Unrecognized fields are ignored.
    """
    return await prompt_service.update(db, current_user.id, prompt_id, data)


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prompt(
    prompt_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a prompt with its versions, tag links and collection memberships."""
    await prompt_service.delete(db, current_user.id, prompt_id)


@router.post(
    "/{prompt_id}/copy",
    response_model=PromptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def copy_prompt(
    prompt_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Prompt:
    """Duplicate a prompt with all versions and tags, titled "<title> (copy)"."""
    return await prompt_service.copy(db, current_user.id, prompt_id)


@router.put("/{prompt_id}/tags", response_model=PromptResponse)
async def replace_prompt_tags(
    prompt_id: UUID,
    data: PromptTagsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Prompt:
    """Replace the prompt's tag set. Unknown tags are created."""
    return await prompt_service.replace_tags(db, current_user.id, prompt_id, data.tags)


@router.post(
    "/{prompt_id}/versions",
    response_model=PromptVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_prompt_version(
    prompt_id: UUID,
    data: PromptVersionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PromptVersion:
    """
    Append a version.

    Defaults: versionLabel "v{n+1}", modelTarget "universal", empty content.
    """
    return await prompt_service.add_version(db, current_user.id, prompt_id, data)


@router.patch("/{prompt_id}/versions/{version_id}", response_model=PromptVersionResponse)
async def update_prompt_version(
    prompt_id: UUID,
    version_id: UUID,
    data: PromptVersionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PromptVersion:
    """Sparse update of one version. Returns 404 unless the caller owns its prompt."""
    return await prompt_service.update_version(
        db, current_user.id, prompt_id, version_id, data,
    )


@router.delete(
    "/{prompt_id}/versions/{version_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_prompt_version(
    prompt_id: UUID,
    version_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Delete a version.

    Returns 400 if it is the prompt's only version.
    """
    await prompt_service.delete_version(db, current_user.id, prompt_id, version_id)
