"""Collection endpoints, including membership management."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.collection import Collection
from models.user import User
from schemas.collection import (
    CollectionCreate,
    CollectionDetail,
    CollectionMemberAdd,
    CollectionReorder,
    CollectionResponse,
    CollectionUpdate,
    CollectionWithCount,
)
from schemas.prompt import PromptSummary
from services.collection_service import collection_service

router = APIRouter(prefix="/collections", tags=["collections"])


def _to_detail(collection: Collection) -> CollectionDetail:
    """Build the detail response; members are already ordered by sort_order."""
    return CollectionDetail(
        **CollectionResponse.model_validate(collection).model_dump(),
        prompts=[PromptSummary.model_validate(m.prompt) for m in collection.memberships],
    )


@router.get("", response_model=list[CollectionWithCount])
async def list_collections(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[CollectionWithCount]:
    """List the user's collections, most recently updated first, with prompt counts."""
    return await collection_service.list_with_counts(db, current_user.id)


@router.post("", response_model=CollectionDetail, status_code=status.HTTP_201_CREATED)
async def create_collection(
    data: CollectionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionDetail:
    """Create an empty collection."""
    collection = await collection_service.create(db, current_user.id, data)
    return _to_detail(collection)


@router.get("/{collection_id}", response_model=CollectionDetail)
async def get_collection(
    collection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionDetail:
    """Get a collection with its member prompts in sort order."""
    collection = await collection_service.get_owned(db, current_user.id, collection_id)
    return _to_detail(collection)


@router.patch("/{collection_id}", response_model=CollectionDetail)
async def update_collection(
    collection_id: UUID,
    data: CollectionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionDetail:
    """Partially update a collection's name or description."""
    collection = await collection_service.update(db, current_user.id, collection_id, data)
    return _to_detail(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a collection. Member prompts are not deleted."""
    await collection_service.delete(db, current_user.id, collection_id)


@router.post(
    "/{collection_id}/prompts",
    response_model=CollectionDetail,
    status_code=status.HTTP_201_CREATED,
)
async def add_collection_prompt(
    collection_id: UUID,
    data: CollectionMemberAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionDetail:
    """
    Add a prompt to a collection (appended at the end unless sortOrder is given).

    Returns 404 if the collection or prompt isn't owned by the user.
    Returns 409 if the prompt is already a member.
    """
    collection = await collection_service.add_prompt(
        db, current_user.id, collection_id, data.prompt_id, data.sort_order,
    )
    return _to_detail(collection)


@router.delete(
    "/{collection_id}/prompts/{prompt_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_collection_prompt(
    collection_id: UUID,
    prompt_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Remove a prompt from a collection. The prompt itself is kept."""
    await collection_service.remove_prompt(db, current_user.id, collection_id, prompt_id)


@router.put("/{collection_id}/prompts/order", response_model=CollectionDetail)
async def reorder_collection_prompts(
    collection_id: UUID,
    data: CollectionReorder,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> CollectionDetail:
    """
    Reorder members. promptIds must list every current member exactly once.

    Returns 400 if promptIds doesn't match the member set.
    """
    collection = await collection_service.reorder(
        db, current_user.id, collection_id, data.prompt_ids,
    )
    return _to_detail(collection)
