"""PromptVersion model for storing the text variants of a prompt."""
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UUIDv7Mixin, utc_now

if TYPE_CHECKING:
    from models.prompt import Prompt


class PromptVersion(Base, UUIDv7Mixin):
    """
    PromptVersion model - one concrete text of a prompt, aimed at a model target.

    Version semantics:
    - Every prompt has at least one version; the first is created with the prompt ("v1")
    - Labels default to "v{n+1}" on append but are free-form and editable
    - model_target is free-form ("claude", "gpt-4", "universal", ...)
    - Versions are owned exclusively by their prompt and deleted with it
    """

    __tablename__ = "prompt_versions"
    __table_args__ = (
        # Composite index for the primary query pattern:
        # SELECT * FROM prompt_versions WHERE prompt_id = ? ORDER BY created_at
        Index("ix_prompt_versions_prompt_id_created_at", "prompt_id", "created_at"),
    )

    # id provided by UUIDv7Mixin
    prompt_id: Mapped[UUID] = mapped_column(
        ForeignKey("prompts.id", ondelete="CASCADE"),
    )
    version_label: Mapped[str] = mapped_column(String(50), nullable=False)
    model_target: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="universal",
        server_default="universal",
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    system_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Template-variable metadata, stored as-is (no rendering happens server-side)
    variables: Mapped[Any | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    prompt: Mapped["Prompt"] = relationship(back_populates="versions")
