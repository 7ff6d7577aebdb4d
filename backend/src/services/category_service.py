"""Service layer for category operations."""
import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.base import utc_now
from models.category import Category
from models.prompt import Prompt
from schemas.category import CategoryCreate, CategoryUpdate, CategoryWithCount
from services.base_entity_service import BaseEntityService
from services.exceptions import ConflictError, NotFoundError, ValidationError
from services.utils import slugify

logger = logging.getLogger(__name__)


class CategoryService(BaseEntityService[Category]):
    """
    Category service.

    The slug is never accepted from clients: it is recomputed from the name on
    create and whenever the name changes, and must stay unique per user.
    """

    model = Category
    entity_name = "Category"

    async def list_with_counts(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[CategoryWithCount]:
        """
        List a user's categories with the number of prompts filed under each.

        Returns:
            Categories sorted by sort_order asc, then name asc.
        """
        prompt_count = (
            select(func.count(Prompt.id))
            .where(Prompt.category_id == Category.id)
            .correlate(Category)
            .scalar_subquery()
        )
        result = await db.execute(
            select(Category, prompt_count.label("prompt_count"))
            .where(Category.user_id == user_id)
            .order_by(Category.sort_order.asc(), Category.name.asc()),
        )
        items = []
        for category, count in result.all():
            item = CategoryWithCount.model_validate(category)
            item.prompt_count = count
            items.append(item)
        return items

    async def _ensure_slug_available(
        self,
        db: AsyncSession,
        user_id: UUID,
        slug: str,
        exclude_id: UUID | None = None,
    ) -> None:
        query = select(Category.id).where(
            Category.user_id == user_id,
            Category.slug == slug,
        )
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        existing = (await db.execute(query)).first()
        if existing is not None:
            raise ConflictError(f"A category with slug '{slug}' already exists")

    @staticmethod
    def _slug_for(name: str) -> str:
        slug = slugify(name)
        if not slug:
            raise ValidationError("Name must contain at least one letter or digit")
        return slug

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: CategoryCreate,
    ) -> Category:
        """
        Create a category for a user.

        Raises:
            ValidationError: If the name produces an empty slug.
            ConflictError: If the user already has a category with the same slug.
        """
        slug = self._slug_for(data.name)
        await self._ensure_slug_available(db, user_id, slug)

        category = Category(
            user_id=user_id,
            name=data.name,
            slug=slug,
            description=data.description,
            color=data.color,
            icon=data.icon,
            sort_order=data.sort_order,
        )
        db.add(category)
        await db.flush()
        await db.refresh(category)
        return category

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        category_id: UUID,
        data: CategoryUpdate,
    ) -> Category:
        """
        Apply a partial update to a category.

        Only fields present in the request are changed. The slug is recomputed
        iff the name is provided and differs from the current one.

        Raises:
            NotFoundError: If the category doesn't exist or isn't owned by the user.
            ValidationError: If the new name produces an empty slug.
            ConflictError: If the new slug collides with another category of the user.
        """
        category = await self.get_owned(db, user_id, category_id)
        update_data = data.model_dump(exclude_unset=True)

        new_name = update_data.pop("name", None)
        if new_name is not None and new_name != category.name:
            slug = self._slug_for(new_name)
            await self._ensure_slug_available(db, user_id, slug, exclude_id=category.id)
            category.name = new_name
            category.slug = slug

        # sort_order is non-nullable; an explicit null leaves it unchanged
        if update_data.get("sort_order", 0) is None:
            update_data.pop("sort_order")

        for field, value in update_data.items():
            setattr(category, field, value)

        category.updated_at = utc_now()
        await db.flush()
        await db.refresh(category)
        return category

    async def delete(
        self,
        db: AsyncSession,
        user_id: UUID,
        category_id: UUID,
    ) -> None:
        """
        Delete a category, detaching its prompts first.

        Prompts are never deleted with their category; their category_id is
        cleared without touching updated_at.

        Raises:
            NotFoundError: If the category doesn't exist or isn't owned by the user.
        """
        category = await self.get_owned(db, user_id, category_id)
        await db.execute(
            update(Prompt)
            .where(Prompt.category_id == category.id)
            .values(category_id=None)
            .execution_options(synchronize_session=False),
        )
        await db.delete(category)
        await db.flush()
        logger.info("Deleted category %s for user %s", category_id, user_id)

    async def get_by_slug(
        self,
        db: AsyncSession,
        user_id: UUID,
        slug: str,
    ) -> tuple[Category, list[Prompt]]:
        """
        Get a category by slug together with its prompts.

        Returns:
            Tuple of (category, prompts) where prompts are sorted by updated_at desc
            and carry category, versions and tags.

        Raises:
            NotFoundError: If the user has no category with that slug.
        """
        result = await db.execute(
            select(Category).where(Category.user_id == user_id, Category.slug == slug),
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError(self.entity_name)

        prompts_result = await db.execute(
            select(Prompt)
            .where(Prompt.user_id == user_id, Prompt.category_id == category.id)
            .options(
                selectinload(Prompt.category),
                selectinload(Prompt.versions),
                selectinload(Prompt.tag_objects),
            )
            .order_by(Prompt.updated_at.desc(), Prompt.created_at.desc(), Prompt.id.desc())
            .execution_options(populate_existing=True),
        )
        return category, list(prompts_result.scalars().all())


category_service = CategoryService()
