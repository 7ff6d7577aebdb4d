"""Export endpoint for downloading all prompts."""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from services import export_service

router = APIRouter(prefix="/export", tags=["export"])


@router.get("")
async def export_prompts(
    export_format: str = Query(default="json", alias="format", description="json or csv"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """
    Download every prompt as primer-prompts.json or primer-prompts.csv.

    Returns 400 for any other format.
    """
    fmt = export_service.parse_export_format(export_format)
    body, media_type, filename = await export_service.export_prompts(
        db, current_user.id, fmt,
    )
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
