"""
Export a user's prompts as a downloadable JSON or CSV document.

JSON carries every version of each prompt; CSV is a flat sheet with one row per
prompt built from its first version.
"""
import csv
import io
import json
from typing import Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.prompt import Prompt
from services.exceptions import ValidationError

ExportFormat = Literal["json", "csv"]

EXPORT_FILENAMES: dict[str, str] = {
    "json": "primer-prompts.json",
    "csv": "primer-prompts.csv",
}
EXPORT_MEDIA_TYPES: dict[str, str] = {
    "json": "application/json",
    "csv": "text/csv",
}
CSV_HEADER = ["Title", "Description", "Category", "Model", "Content"]


def parse_export_format(value: str | None) -> ExportFormat:
    """
    Validate the requested export format.

    Raises:
        ValidationError: If the format is anything other than json or csv.
    """
    if value is None or value == "json":
        return "json"
    if value == "csv":
        return "csv"
    raise ValidationError(f"Unsupported export format '{value}'. Use 'json' or 'csv'.")


async def get_export_prompts(db: AsyncSession, user_id: UUID) -> list[Prompt]:
    """Fetch all of the user's prompts with category and versions, newest update first."""
    result = await db.execute(
        select(Prompt)
        .where(Prompt.user_id == user_id)
        .options(selectinload(Prompt.category), selectinload(Prompt.versions))
        .order_by(Prompt.updated_at.desc(), Prompt.created_at.desc(), Prompt.id.desc())
        .execution_options(populate_existing=True),
    )
    return list(result.scalars().all())


def render_json(prompts: list[Prompt]) -> str:
    """Render prompts as a pretty-printed (2-space) JSON array."""
    data = [
        {
            "title": prompt.title,
            "description": prompt.description,
            "category": prompt.category.name if prompt.category else None,
            "isFavorite": prompt.is_favorite,
            "versions": [
                {
                    "label": version.version_label,
                    "model": version.model_target,
                    "content": version.content,
                    "systemPrompt": version.system_prompt,
                    "notes": version.notes,
                }
                for version in prompt.versions
            ],
        }
        for prompt in prompts
    ]
    return json.dumps(data, indent=2, ensure_ascii=False)


def render_csv(prompts: list[Prompt]) -> str:
    """
    Render prompts as CSV, one row per prompt from its first version.

    Every field is quoted and embedded quotes are doubled; missing values are
    written as empty strings.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for prompt in prompts:
        first = prompt.versions[0] if prompt.versions else None
        writer.writerow([
            prompt.title or "",
            prompt.description or "",
            prompt.category.name if prompt.category else "",
            first.model_target if first else "",
            first.content if first else "",
        ])
    return buffer.getvalue()


async def export_prompts(
    db: AsyncSession,
    user_id: UUID,
    export_format: ExportFormat,
) -> tuple[str, str, str]:
    """
    Build an export document.

    Returns:
        Tuple of (body, media type, filename).
    """
    prompts = await get_export_prompts(db, user_id)
    body = render_csv(prompts) if export_format == "csv" else render_json(prompts)
    return body, EXPORT_MEDIA_TYPES[export_format], EXPORT_FILENAMES[export_format]
