"""Collection models for curated, ordered groups of prompts."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin, utc_now

if TYPE_CHECKING:
    from models.prompt import Prompt
    from models.user import User


class CollectionPrompt(Base):
    """
    Membership of a prompt in a collection.

    Unlike prompt_tags this is an association object rather than a plain junction
    table, because membership carries a sort_order that drives rendering order (asc).
    """

    __tablename__ = "collection_prompts"
    __table_args__ = (
        Index("ix_collection_prompts_prompt_id", "prompt_id"),
    )

    collection_id: Mapped[UUID] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True,
    )
    prompt_id: Mapped[UUID] = mapped_column(
        ForeignKey("prompts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    sort_order: Mapped[int] = mapped_column(default=0, server_default="0")
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    collection: Mapped["Collection"] = relationship(back_populates="memberships")
    prompt: Mapped["Prompt"] = relationship(back_populates="collection_memberships")


class Collection(Base, UUIDv7Mixin, TimestampMixin):
    """Collection model - a named grouping of prompts owned by one user."""

    __tablename__ = "collections"

    # id provided by UUIDv7Mixin
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="collections")
    memberships: Mapped[list[CollectionPrompt]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by=CollectionPrompt.sort_order,
    )
