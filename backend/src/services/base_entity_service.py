"""
Base service class for user-owned entities.

Provides the ownership guard shared by Category, Collection and Prompt services:
every read-by-id and every mutation loads the row through get_owned(), which
scopes the lookup to the caller and raises NotFoundError otherwise.
"""
from datetime import datetime
from typing import Any, Generic, Literal, Protocol, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.base import ExecutableOption

from services.exceptions import NotFoundError


class OwnedEntity(Protocol):
    """Protocol defining the interface for entities owned by a user."""

    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: datetime


T = TypeVar("T", bound=OwnedEntity)


class BaseEntityService(Generic[T]):
    """
    Base class for user-scoped entity access.

    Subclasses must define:
    - model: The SQLAlchemy model class
    - entity_name: Human-readable name for error messages (e.g., "Category")

    Subclasses may override _default_options() to eager-load relationships
    needed by their response schemas.
    """

    # Class attributes to be defined by subclasses
    model: type[T]
    entity_name: str  # For error messages: "Category", "Prompt", etc.

    def _default_options(self) -> list[ExecutableOption]:
        """Loader options applied to every ownership-scoped fetch."""
        return []

    def _get_sort_columns(self) -> dict[str, ColumnElement[Any]]:
        """Map of sort keys to columns; subclasses extend it."""
        return {
            "created_at": self.model.created_at,
            "updated_at": self.model.updated_at,
        }

    def _apply_sorting(
        self,
        query: Select[tuple[T]],
        sort_by: str,
        sort_order: Literal["asc", "desc"],
    ) -> Select[tuple[T]]:
        """Apply sorting with tiebreakers (created_at, then id)."""
        sort_columns = self._get_sort_columns()
        sort_column = sort_columns.get(sort_by, self.model.created_at)

        if sort_order == "desc":
            return query.order_by(
                sort_column.desc(),
                self.model.created_at.desc(),
                self.model.id.desc(),
            )
        return query.order_by(
            sort_column.asc(),
            self.model.created_at.asc(),
            self.model.id.asc(),
        )

    def _owned_query(self, user_id: UUID) -> Select[tuple[T]]:
        """Base SELECT scoped to rows owned by user_id."""
        return select(self.model).where(self.model.user_id == user_id)

    async def get(
        self,
        db: AsyncSession,
        user_id: UUID,
        entity_id: UUID,
        options: list[ExecutableOption] | None = None,
    ) -> T | None:
        """
        Get an entity by ID, scoped to user.

        Always repopulates already-loaded instances so that values written with
        Core UPDATE statements are visible.

        Args:
            db: Database session.
            user_id: User ID to scope the entity.
            entity_id: ID of the entity to retrieve.
            options: Loader options; defaults to _default_options().

        Returns:
            The entity if found and owned by the user, None otherwise.
        """
        query = (
            self._owned_query(user_id)
            .where(self.model.id == entity_id)
            .options(*(self._default_options() if options is None else options))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_owned(
        self,
        db: AsyncSession,
        user_id: UUID,
        entity_id: UUID,
        options: list[ExecutableOption] | None = None,
    ) -> T:
        """
        Ownership guard: get an entity owned by the user or raise.

        Raises:
            NotFoundError: If the entity doesn't exist or belongs to another user.
        """
        entity = await self.get(db, user_id, entity_id, options=options)
        if entity is None:
            raise NotFoundError(self.entity_name)
        return entity

    async def count_user_items(
        self,
        db: AsyncSession,
        user_id: UUID,
        *criteria: ColumnElement[bool],
    ) -> int:
        """Count the user's entities, optionally narrowed by extra WHERE criteria."""
        query = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.user_id == user_id, *criteria)
        )
        result = await db.execute(query)
        return result.scalar() or 0

    async def delete(
        self,
        db: AsyncSession,
        user_id: UUID,
        entity_id: UUID,
    ) -> None:
        """
        Permanently delete an owned entity.

        Raises:
            NotFoundError: If the entity doesn't exist or belongs to another user.
        """
        entity = await self.get_owned(db, user_id, entity_id)
        await db.delete(entity)
        await db.flush()
