"""Service layer for collection operations."""
import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.base import ExecutableOption

from models.base import utc_now
from models.collection import Collection, CollectionPrompt
from models.prompt import Prompt
from schemas.collection import CollectionCreate, CollectionUpdate, CollectionWithCount
from services.base_entity_service import BaseEntityService
from services.exceptions import ConflictError, NotFoundError, ValidationError
from services.prompt_service import prompt_service

logger = logging.getLogger(__name__)


class CollectionService(BaseEntityService[Collection]):
    """
    Collection service.

    Collections hold an ordered list of the user's own prompts. Every membership
    change (add, remove, reorder) advances the collection's updated_at.
    """

    model = Collection
    entity_name = "Collection"

    def _default_options(self) -> list[ExecutableOption]:
        """Load members with the data needed to render prompt summaries."""
        return [
            selectinload(Collection.memberships)
            .selectinload(CollectionPrompt.prompt)
            .options(
                selectinload(Prompt.category),
                selectinload(Prompt.versions),
                selectinload(Prompt.tag_objects),
            ),
        ]

    async def list_with_counts(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[CollectionWithCount]:
        """
        List a user's collections with their member counts.

        Returns:
            Collections sorted by updated_at desc.
        """
        prompt_count = (
            select(func.count())
            .select_from(CollectionPrompt)
            .where(CollectionPrompt.collection_id == Collection.id)
            .correlate(Collection)
            .scalar_subquery()
        )
        query = select(Collection, prompt_count.label("prompt_count")).where(
            Collection.user_id == user_id,
        )
        result = await db.execute(self._apply_sorting(query, "updated_at", "desc"))
        items = []
        for collection, count in result.all():
            item = CollectionWithCount.model_validate(collection)
            item.prompt_count = count
            items.append(item)
        return items

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: CollectionCreate,
    ) -> Collection:
        """Create an empty collection for a user."""
        collection = Collection(
            user_id=user_id,
            name=data.name,
            description=data.description,
        )
        db.add(collection)
        await db.flush()
        return await self.get_owned(db, user_id, collection.id)

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        collection_id: UUID,
        data: CollectionUpdate,
    ) -> Collection:
        """
        Apply a partial update (name, description) to a collection.

        Raises:
            NotFoundError: If the collection doesn't exist or isn't owned by the user.
        """
        collection = await self.get_owned(db, user_id, collection_id, options=[])
        update_data = data.model_dump(exclude_unset=True)
        # name is non-nullable; an explicit null leaves it unchanged
        if update_data.get("name", "") is None:
            update_data.pop("name")
        for field, value in update_data.items():
            setattr(collection, field, value)
        collection.updated_at = utc_now()
        await db.flush()
        return await self.get_owned(db, user_id, collection_id)

    async def delete(
        self,
        db: AsyncSession,
        user_id: UUID,
        collection_id: UUID,
    ) -> None:
        """
        Delete a collection and its membership rows. Member prompts are kept.

        Raises:
            NotFoundError: If the collection doesn't exist or isn't owned by the user.
        """
        collection = await self.get_owned(
            db, user_id, collection_id, options=[selectinload(Collection.memberships)],
        )
        await db.delete(collection)
        await db.flush()
        logger.info("Deleted collection %s for user %s", collection_id, user_id)

    async def add_prompt(
        self,
        db: AsyncSession,
        user_id: UUID,
        collection_id: UUID,
        prompt_id: UUID,
        sort_order: int | None = None,
    ) -> Collection:
        """
        Add one of the user's prompts to a collection.

        Without an explicit sort_order the prompt is appended after the current
        last member.

        Raises:
            NotFoundError: If the collection or the prompt isn't owned by the user.
            ConflictError: If the prompt is already a member.
        """
        collection = await self.get_owned(
            db, user_id, collection_id, options=[selectinload(Collection.memberships)],
        )
        await prompt_service.get_owned(db, user_id, prompt_id, options=[])

        if any(m.prompt_id == prompt_id for m in collection.memberships):
            raise ConflictError("Prompt is already in this collection")

        if sort_order is None:
            sort_order = max((m.sort_order for m in collection.memberships), default=-1) + 1

        db.add(
            CollectionPrompt(
                collection_id=collection.id,
                prompt_id=prompt_id,
                sort_order=sort_order,
            ),
        )
        collection.updated_at = utc_now()
        await db.flush()
        return await self.get_owned(db, user_id, collection_id)

    async def remove_prompt(
        self,
        db: AsyncSession,
        user_id: UUID,
        collection_id: UUID,
        prompt_id: UUID,
    ) -> None:
        """
        Remove a prompt from a collection. The prompt itself is kept.

        Raises:
            NotFoundError: If the collection isn't owned by the user or the prompt
                isn't a member.
        """
        collection = await self.get_owned(
            db, user_id, collection_id, options=[selectinload(Collection.memberships)],
        )
        membership = next(
            (m for m in collection.memberships if m.prompt_id == prompt_id), None,
        )
        if membership is None:
            raise NotFoundError("Collection member")

        collection.memberships.remove(membership)
        collection.updated_at = utc_now()
        await db.flush()

    async def reorder(
        self,
        db: AsyncSession,
        user_id: UUID,
        collection_id: UUID,
        prompt_ids: list[UUID],
    ) -> Collection:
        """
        Reorder a collection's members; sort_order becomes each id's list position.

        Raises:
            NotFoundError: If the collection isn't owned by the user.
            ValidationError: If prompt_ids is not exactly the current member set.
        """
        collection = await self.get_owned(
            db, user_id, collection_id, options=[selectinload(Collection.memberships)],
        )
        by_prompt = {m.prompt_id: m for m in collection.memberships}
        if len(prompt_ids) != len(set(prompt_ids)) or set(prompt_ids) != set(by_prompt):
            raise ValidationError("Prompt ids must list every member of the collection exactly once")

        for position, prompt_id in enumerate(prompt_ids):
            by_prompt[prompt_id].sort_order = position
        collection.updated_at = utc_now()
        await db.flush()
        return await self.get_owned(db, user_id, collection_id)


collection_service = CollectionService()
