"""Service layer for the prompt aggregate (prompts and their versions)."""
import logging
from typing import Any, Literal
from uuid import UUID

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.base import ExecutableOption

from models.base import utc_now
from models.prompt import Prompt
from models.prompt_version import PromptVersion
from models.tag import Tag, prompt_tags
from schemas.prompt import (
    DEFAULT_MODEL_TARGET,
    PromptCreate,
    PromptUpdate,
    PromptVersionCreate,
    PromptVersionUpdate,
)
from services.base_entity_service import BaseEntityService
from services.category_service import category_service
from services.exceptions import LastVersionError, NotFoundError
from services.tag_service import get_or_create_tags, set_prompt_tags

logger = logging.getLogger(__name__)

# Fields whose change counts as a content edit and advances updated_at
CONTENT_FIELDS = frozenset({"title", "description"})
# Flags that never advance updated_at
METADATA_FIELDS = frozenset({"is_favorite", "is_pinned", "category_id"})
# Fields that are NOT NULL in the database; an explicit null leaves them unchanged
NON_NULLABLE_FIELDS = frozenset({
    "title", "is_favorite", "is_pinned", "version_label", "model_target", "content", "is_active",
})

PromptSort = Literal["updatedAt", "title", "usageCount"]

# Public sort key -> (internal column key, direction)
SORT_OPTIONS: dict[str, tuple[str, Literal["asc", "desc"]]] = {
    "updatedAt": ("updated_at", "desc"),
    "title": ("title", "asc"),
    "usageCount": ("usage_count", "desc"),
}


def _drop_nulls_for_required(values: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in values.items()
        if not (value is None and key in NON_NULLABLE_FIELDS)
    }


class PromptService(BaseEntityService[Prompt]):
    """
    Prompt service with full CRUD operations.

    Extends BaseEntityService with prompt-specific:
    - Creation of the first version ("v1") together with the prompt
    - Split between content updates (advance updated_at) and metadata updates (don't)
    - Usage tracking on read
    - Version management with a two-hop ownership check
    - Paginated listing with category/favorite/tag filters
    """

    model = Prompt
    entity_name = "Prompt"

    def _default_options(self) -> list[ExecutableOption]:
        """Eager-load the full aggregate (category, versions, tags)."""
        return [
            selectinload(Prompt.category),
            selectinload(Prompt.versions),
            selectinload(Prompt.tag_objects),
        ]

    def _get_sort_columns(self) -> dict[str, ColumnElement[Any]]:
        """Get sort columns for prompts."""
        return {
            **super()._get_sort_columns(),
            "title": Prompt.title,
            "usage_count": Prompt.usage_count,
        }

    async def _ensure_category_owned(
        self,
        db: AsyncSession,
        user_id: UUID,
        category_id: UUID | None,
    ) -> None:
        if category_id is not None:
            await category_service.get_owned(db, user_id, category_id)

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: PromptCreate,
    ) -> Prompt:
        """
        Create a new prompt with its first version.

        Args:
            db: Database session.
            user_id: User ID to create the prompt for.
            data: Prompt creation data.

        Returns:
            The created prompt with category, versions and tags loaded.

        Raises:
            NotFoundError: If category_id refers to a category the user doesn't own.
        """
        await self._ensure_category_owned(db, user_id, data.category_id)

        # Get or create tags
        tag_objects = await get_or_create_tags(db, user_id, data.tags)

        prompt = Prompt(
            user_id=user_id,
            title=data.title,
            description=data.description,
            category_id=data.category_id,
        )
        prompt.versions = [
            PromptVersion(
                version_label="v1",
                model_target=data.model_target,
                content=data.content,
                system_prompt=data.system_prompt or None,
            ),
        ]
        prompt.tag_objects = tag_objects
        db.add(prompt)
        await db.flush()

        return await self.get_owned(db, user_id, prompt.id)

    async def get_and_track_usage(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
    ) -> Prompt:
        """
        Get the full prompt aggregate and record one use of it.

        The returned object reflects the state before this read; the incremented
        usage_count is visible to the next read.

        Raises:
            NotFoundError: If the prompt doesn't exist or isn't owned by the user.
        """
        prompt = await self.get_owned(db, user_id, prompt_id)
        await self.increment_usage(db, prompt.id)
        return prompt

    async def increment_usage(self, db: AsyncSession, prompt_id: UUID) -> None:
        """
        Increment usage_count with a standalone UPDATE.

        updated_at is not part of the statement, so usage never counts as an edit.
        Concurrent reads may lose an increment.
        """
        await db.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(usage_count=Prompt.usage_count + 1)
            .execution_options(synchronize_session=False),
        )

    async def update_metadata(
        self,
        db: AsyncSession,
        prompt_id: UUID,
        values: dict[str, Any],
    ) -> None:
        """Write metadata columns without touching updated_at."""
        if not values:
            return
        await db.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(**values)
            .execution_options(synchronize_session=False),
        )

    async def update_content(
        self,
        db: AsyncSession,
        prompt_id: UUID,
        values: dict[str, Any],
    ) -> None:
        """Write content columns and advance updated_at."""
        if not values:
            return
        await db.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(**values, updated_at=utc_now())
            .execution_options(synchronize_session=False),
        )

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        data: PromptUpdate,
    ) -> Prompt:
        """
        Apply a sparse update to a prompt.

        Metadata fields (is_favorite, is_pinned, category_id) are written first
        with update_metadata, then content fields (title, description) with
        update_content. The two statements are not atomic with respect to each
        other beyond the request's transaction.

        Args:
            db: Database session.
            user_id: User ID to scope the prompt.
            prompt_id: ID of the prompt to update.
            data: Update data; only fields present in the request are applied.

        Returns:
            The updated prompt with category, versions and tags loaded.

        Raises:
            NotFoundError: If the prompt or the new category isn't owned by the user.
        """
        prompt = await self.get_owned(db, user_id, prompt_id, options=[])
        update_data = _drop_nulls_for_required(data.model_dump(exclude_unset=True))

        metadata = {k: v for k, v in update_data.items() if k in METADATA_FIELDS}
        content = {k: v for k, v in update_data.items() if k in CONTENT_FIELDS}

        if "category_id" in metadata:
            await self._ensure_category_owned(db, user_id, metadata["category_id"])

        await self.update_metadata(db, prompt.id, metadata)
        await self.update_content(db, prompt.id, content)

        return await self.get_owned(db, user_id, prompt_id)

    async def delete(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
    ) -> None:
        """
        Delete a prompt with its versions, tag links and collection memberships.

        Raises:
            NotFoundError: If the prompt doesn't exist or isn't owned by the user.
        """
        prompt = await self.get_owned(
            db,
            user_id,
            prompt_id,
            options=[
                selectinload(Prompt.versions),
                selectinload(Prompt.tag_objects),
                selectinload(Prompt.collection_memberships),
            ],
        )
        await db.delete(prompt)
        await db.flush()
        logger.info("Deleted prompt %s for user %s", prompt_id, user_id)

    async def copy(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
    ) -> Prompt:
        """
        Duplicate a prompt.

        The copy gets the title suffixed with " (copy)", the same description and
        category, a deep copy of every version, and the same tags. Collection
        memberships, favorite/pin flags and usage are not copied.

        Raises:
            NotFoundError: If the prompt doesn't exist or isn't owned by the user.
        """
        original = await self.get_owned(db, user_id, prompt_id)

        duplicate = Prompt(
            user_id=user_id,
            title=f"{original.title} (copy)",
            description=original.description,
            category_id=original.category_id,
        )
        duplicate.versions = [
            PromptVersion(
                version_label=version.version_label,
                model_target=version.model_target,
                content=version.content,
                system_prompt=version.system_prompt,
                notes=version.notes,
                variables=version.variables,
                is_active=version.is_active,
            )
            for version in original.versions
        ]
        duplicate.tag_objects = list(original.tag_objects)
        db.add(duplicate)
        await db.flush()

        return await self.get_owned(db, user_id, duplicate.id)

    async def replace_tags(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        tag_names: list[str],
    ) -> Prompt:
        """
        Replace a prompt's tags. Does not advance updated_at.

        Raises:
            NotFoundError: If the prompt doesn't exist or isn't owned by the user.
        """
        prompt = await self.get_owned(db, user_id, prompt_id, options=[])
        await set_prompt_tags(db, prompt, tag_names)
        return await self.get_owned(db, user_id, prompt_id)

    # ---- Versions ----

    async def get_owned_version(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        version_id: UUID,
    ) -> PromptVersion:
        """
        Two-hop ownership guard: version -> prompt -> user.

        Raises:
            NotFoundError: If the version doesn't belong to the prompt, or the
                prompt isn't owned by the user.
        """
        result = await db.execute(
            select(PromptVersion)
            .join(Prompt, PromptVersion.prompt_id == Prompt.id)
            .where(
                PromptVersion.id == version_id,
                PromptVersion.prompt_id == prompt_id,
                Prompt.user_id == user_id,
            )
            .execution_options(populate_existing=True),
        )
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("Version")
        return version

    async def add_version(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        data: PromptVersionCreate,
    ) -> PromptVersion:
        """
        Append a version to a prompt.

        Defaults: version_label "v{n+1}" where n is the current version count,
        model_target "universal", content "". The prompt's updated_at is unchanged.

        Raises:
            NotFoundError: If the prompt doesn't exist or isn't owned by the user.
        """
        prompt = await self.get_owned(db, user_id, prompt_id, options=[])
        version_count = await self.count_versions(db, prompt.id)

        version = PromptVersion(
            prompt_id=prompt.id,
            version_label=data.version_label or f"v{version_count + 1}",
            model_target=data.model_target or DEFAULT_MODEL_TARGET,
            content=data.content if data.content is not None else "",
            system_prompt=data.system_prompt,
            notes=data.notes,
            variables=data.variables,
        )
        db.add(version)
        await db.flush()
        await db.refresh(version)
        return version

    async def update_version(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        version_id: UUID,
        data: PromptVersionUpdate,
    ) -> PromptVersion:
        """
        Apply a sparse update to one version.

        Raises:
            NotFoundError: If the version isn't reachable through a prompt owned by the user.
        """
        version = await self.get_owned_version(db, user_id, prompt_id, version_id)
        update_data = _drop_nulls_for_required(data.model_dump(exclude_unset=True))
        for field, value in update_data.items():
            setattr(version, field, value)
        await db.flush()
        await db.refresh(version)
        return version

    async def delete_version(
        self,
        db: AsyncSession,
        user_id: UUID,
        prompt_id: UUID,
        version_id: UUID,
    ) -> None:
        """
        Delete a version unless it is the prompt's only one.

        Raises:
            NotFoundError: If the version isn't reachable through a prompt owned by the user.
            LastVersionError: If it is the last remaining version.
        """
        version = await self.get_owned_version(db, user_id, prompt_id, version_id)
        if await self.count_versions(db, prompt_id) <= 1:
            raise LastVersionError()
        await db.delete(version)
        await db.flush()

    async def count_versions(self, db: AsyncSession, prompt_id: UUID) -> int:
        """Count the versions of a prompt."""
        result = await db.execute(
            select(func.count())
            .select_from(PromptVersion)
            .where(PromptVersion.prompt_id == prompt_id),
        )
        return result.scalar() or 0

    # ---- Listing ----

    async def list_prompts(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        category_id: UUID | None = None,
        favorite: bool = False,
        tag: str | None = None,
        sort: PromptSort = "updatedAt",
    ) -> tuple[list[Prompt], int]:
        """
        List a user's prompts with filters and offset pagination.

        Args:
            db: Database session.
            user_id: User ID to scope prompts.
            page: 1-based page number; offset is (page - 1) * limit.
            limit: Page size.
            category_id: Only prompts in this category.
            favorite: Only favorite prompts when True.
            tag: Only prompts carrying this tag name (normalized to lowercase).
            sort: updatedAt (desc), title (asc) or usageCount (desc); ties are
                broken by created_at then id.

        Returns:
            Tuple of (prompts with category, versions and tags loaded, total count).
        """
        base_query = self._owned_query(user_id)

        if category_id is not None:
            base_query = base_query.where(Prompt.category_id == category_id)
        if favorite:
            base_query = base_query.where(Prompt.is_favorite.is_(True))
        if tag:
            tagged = (
                select(prompt_tags.c.prompt_id)
                .join(Tag, Tag.id == prompt_tags.c.tag_id)
                .where(Tag.user_id == user_id, Tag.name == tag.strip().lower())
            )
            base_query = base_query.where(Prompt.id.in_(tagged))

        # Get total count before pagination
        count_query = select(func.count()).select_from(base_query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        sort_by, sort_order = SORT_OPTIONS.get(sort, SORT_OPTIONS["updatedAt"])
        query = (
            self._apply_sorting(base_query, sort_by, sort_order)
            .options(*self._default_options())
            .offset((page - 1) * limit)
            .limit(limit)
            # Usage counts and content edits are written with Core UPDATEs
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total


prompt_service = PromptService()
