"""
Quick search across a user's prompts.

Case-insensitive substring matching over title, description and the content
of any version. There is no relevance ranking: matches are ordered by
updated_at desc.
"""
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.prompt import Prompt
from models.prompt_version import PromptVersion
from services.utils import escape_like

SEARCH_RESULT_LIMIT = 20


async def search_prompts(
    db: AsyncSession,
    user_id: UUID,
    query: str,
    limit: int = SEARCH_RESULT_LIMIT,
) -> list[Prompt]:
    """
    Find the user's prompts whose title, description or any version content
    contains the query.

    Args:
        db: Database session.
        user_id: User ID to scope prompts.
        query: Free text; surrounding whitespace is ignored and LIKE wildcards
            match literally.
        limit: Maximum number of results.

    Returns:
        Prompts with category and versions loaded, newest update first. An empty
        or whitespace-only query returns [] without querying the database.
    """
    term = query.strip()
    if not term:
        return []

    pattern = f"%{escape_like(term)}%"
    version_match = (
        select(PromptVersion.prompt_id)
        .where(PromptVersion.content.ilike(pattern, escape="\\"))
    )
    result = await db.execute(
        select(Prompt)
        .where(
            Prompt.user_id == user_id,
            or_(
                Prompt.title.ilike(pattern, escape="\\"),
                Prompt.description.ilike(pattern, escape="\\"),
                Prompt.id.in_(version_match),
            ),
        )
        .options(
            selectinload(Prompt.category),
            selectinload(Prompt.versions),
            selectinload(Prompt.tag_objects),
        )
        .order_by(Prompt.updated_at.desc(), Prompt.created_at.desc(), Prompt.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True),
    )
    return list(result.scalars().all())
