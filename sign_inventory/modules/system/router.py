"""
System Router - storage health and recovery
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sign_inventory.core.container import ServiceContainer, get_container
from sign_inventory.core.exceptions import StorageUnavailable
from sign_inventory.modules.notifications.service import NotificationLevel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["System"])


class HealthResponse(BaseModel):
    storage: bool
    schema_version: int | None = None
    online: bool
    queued: int | None = None
    drafts: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health(container: ServiceContainer = Depends(get_container)):
    """
    Storage and sync health. storage=false means the local database is
    broken and the UI should offer a reset.
    """
    online = container.connectivity.is_online
    if not await container.store.check_connection():
        return HealthResponse(storage=False, online=online)

    return HealthResponse(
        storage=True,
        schema_version=await container.store.schema_version(),
        online=online,
        queued=await container.sync_queue.count(),
        drafts=await container.drafts.count(),
    )


@router.post("/storage/reset")
async def reset_storage(container: ServiceContainer = Depends(get_container)):
    """
    Delete the local database and start from empty.
    All drafts, downloads and queued saves are lost.
    """
    try:
        await container.store.reset()
    except StorageUnavailable:
        container.notifications.push(
            NotificationLevel.error,
            "Failed to reset database. Please try clearing your app data.",
        )
        raise

    container.notifications.push(NotificationLevel.success, "Database reset successfully.")
    return {"message": "Local storage reset"}


@router.post("/cache/clear")
async def clear_cache(container: ServiceContainer = Depends(get_container)):
    """Clear downloaded catalogs, sites, areas and the sync queue."""
    await container.catalog.clear_all()
    return {"message": "Cache cleared"}
