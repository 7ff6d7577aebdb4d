"""Service layer for tag operations."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.prompt import Prompt
from models.tag import Tag, prompt_tags
from schemas.tag import TagWithCount
from schemas.validators import validate_and_normalize_tag, validate_and_normalize_tags


async def get_or_create_tags(
    db: AsyncSession,
    user_id: UUID,
    tag_names: list[str],
) -> list[Tag]:
    """
    Get existing tags or create new ones.

    Args:
        db: Database session.
        user_id: User ID to scope tags.
        tag_names: List of tag names to get or create.

    Returns:
        List of Tag objects (existing or newly created), in first-seen order.
    """
    if not tag_names:
        return []

    normalized = validate_and_normalize_tags(tag_names)
    if not normalized:
        return []

    # Fetch existing tags
    result = await db.execute(
        select(Tag).where(
            Tag.user_id == user_id,
            Tag.name.in_(normalized),
        ),
    )
    existing_tags = {tag.name: tag for tag in result.scalars()}

    # Create missing tags
    tags = []
    for name in normalized:
        if name in existing_tags:
            tags.append(existing_tags[name])
        else:
            new_tag = Tag(user_id=user_id, name=name)
            db.add(new_tag)
            tags.append(new_tag)

    await db.flush()
    return tags


async def get_or_create_tag(
    db: AsyncSession,
    user_id: UUID,
    name: str,
) -> tuple[Tag, bool]:
    """
    Get a tag by normalized name, creating it if missing.

    Returns:
        Tuple of (tag, created) where created is False for an existing tag.
    """
    normalized = validate_and_normalize_tag(name)
    existing = await get_tag_by_name(db, user_id, normalized)
    if existing is not None:
        return existing, False

    tag = Tag(user_id=user_id, name=normalized)
    db.add(tag)
    await db.flush()
    await db.refresh(tag)
    return tag, True


async def get_user_tags_with_counts(
    db: AsyncSession,
    user_id: UUID,
) -> list[TagWithCount]:
    """
    Get all tags for a user with the number of prompts using each.

    Tags not attached to any prompt are included with a count of 0.

    Returns:
        List of TagWithCount sorted by name asc.
    """
    # LEFT JOIN to include tags with zero count; COUNT ignores NULLs
    result = await db.execute(
        select(Tag, func.count(prompt_tags.c.prompt_id).label("prompt_count"))
        .outerjoin(prompt_tags, Tag.id == prompt_tags.c.tag_id)
        .where(Tag.user_id == user_id)
        .group_by(Tag.id)
        .order_by(Tag.name.asc()),
    )
    items = []
    for tag, count in result.all():
        item = TagWithCount.model_validate(tag)
        item.prompt_count = count
        items.append(item)
    return items


async def get_tag_by_name(
    db: AsyncSession,
    user_id: UUID,
    tag_name: str,
) -> Tag | None:
    """
    Get a tag by name for a user.

    Args:
        db: Database session.
        user_id: User ID to scope the tag.
        tag_name: Name of the tag to find.

    Returns:
        The Tag if found, None otherwise.
    """
    normalized = tag_name.lower().strip()
    result = await db.execute(
        select(Tag).where(
            Tag.user_id == user_id,
            Tag.name == normalized,
        ),
    )
    return result.scalar_one_or_none()


async def set_prompt_tags(
    db: AsyncSession,
    prompt: Prompt,
    tag_names: list[str],
) -> None:
    """
    Replace the full tag set of a prompt.

    Tag links are metadata: the prompt's updated_at is left unchanged. Tags
    that end up unused are kept so they remain available for reuse.

    Args:
        db: Database session.
        prompt: Owned prompt whose tags are replaced.
        tag_names: New tag names (normalized here).
    """
    tags = await get_or_create_tags(db, prompt.user_id, tag_names)
    # Load the current links through the async session before assigning
    await db.execute(
        select(Prompt)
        .where(Prompt.id == prompt.id)
        .options(selectinload(Prompt.tag_objects))
        .execution_options(populate_existing=True),
    )
    prompt.tag_objects = tags
    await db.flush()
