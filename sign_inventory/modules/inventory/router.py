"""
Inventory Router - the checklist Save action
"""

from fastapi import APIRouter, Depends

from sign_inventory.core.container import get_inventory_service
from .schemas import SaveInventoryDto, SaveInventoryResponse
from .service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("/save", response_model=SaveInventoryResponse, status_code=201)
async def save_inventory(
    dto: SaveInventoryDto,
    inventory: InventoryService = Depends(get_inventory_service),
):
    """
    Save the marked signs.

    Goes straight to the remote service when online, into the sync queue
    when offline. The draft for the site/area is cleared on success and
    kept on failure.
    """
    return await inventory.save_inventory(dto)
