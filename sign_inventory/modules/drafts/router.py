"""
Drafts Router - autosave and resume of in-progress checklists
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sign_inventory.core.container import get_drafts_service
from sign_inventory.core.exceptions import NotFoundError
from sign_inventory.core.utils import draft_key
from .schemas import DraftResponse, SaveDraftDto
from .service import DraftsService

router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.get("", response_model=List[DraftResponse])
async def list_drafts(drafts: DraftsService = Depends(get_drafts_service)):
    """
    Get every resident draft, most recent first.
    """
    return await drafts.list_drafts()


@router.get("/current", response_model=DraftResponse)
async def get_draft(
    site_id: str = Query(...),
    area_id: Optional[str] = Query(None),
    drafts: DraftsService = Depends(get_drafts_service),
):
    """
    Get the draft for a site/area.
    404 means there is nothing to resume and the catalog should be loaded.
    """
    draft = await drafts.get_draft(site_id, area_id)
    if draft is None:
        raise NotFoundError("Draft", draft_key(site_id, area_id))
    return draft


@router.put("", response_model=DraftResponse)
async def save_draft(
    dto: SaveDraftDto,
    drafts: DraftsService = Depends(get_drafts_service),
):
    """
    Replace the draft for a site/area. Called after every status change.
    """
    return await drafts.save_draft(
        dto.site_id,
        dto.area_id,
        dto.signs,
        site_name=dto.site_name,
        area_name=dto.area_name,
    )


@router.delete("")
async def delete_draft(
    site_id: str = Query(...),
    area_id: Optional[str] = Query(None),
    drafts: DraftsService = Depends(get_drafts_service),
):
    """
    Discard a draft.
    """
    if not await drafts.delete_draft(site_id, area_id):
        raise NotFoundError("Draft", draft_key(site_id, area_id))
    return {"message": "Draft deleted successfully"}
