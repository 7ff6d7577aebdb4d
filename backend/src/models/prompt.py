"""Prompt model - the root of the prompt aggregate."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.prompt_version import PromptVersion
from models.tag import prompt_tags

if TYPE_CHECKING:
    from models.category import Category
    from models.collection import CollectionPrompt
    from models.tag import Tag
    from models.user import User


class Prompt(Base, UUIDv7Mixin, TimestampMixin):
    """
    Prompt model - a titled, user-owned unit of reusable AI input text.

    The text itself lives in one or more PromptVersion rows. updated_at tracks
    content edits (title, description) only; see PromptService for the split
    between content and metadata writes.
    """

    __tablename__ = "prompts"

    # id provided by UUIDv7Mixin
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_favorite: Mapped[bool] = mapped_column(default=False, server_default="0")
    is_pinned: Mapped[bool] = mapped_column(default=False, server_default="0")
    usage_count: Mapped[int] = mapped_column(default=0, server_default="0")

    user: Mapped["User"] = relationship(back_populates="prompts")
    category: Mapped["Category | None"] = relationship(back_populates="prompts")
    versions: Mapped[list[PromptVersion]] = relationship(
        back_populates="prompt",
        cascade="all, delete-orphan",
        order_by=(PromptVersion.created_at, PromptVersion.id),
    )
    tag_objects: Mapped[list["Tag"]] = relationship(
        secondary=prompt_tags,
        back_populates="prompts",
    )
    collection_memberships: Mapped[list["CollectionPrompt"]] = relationship(
        back_populates="prompt",
        cascade="all, delete-orphan",
    )
