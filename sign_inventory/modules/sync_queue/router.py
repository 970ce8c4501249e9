"""
Sync Router - pending-sync indicator and manual/background drain triggers
"""

from typing import List

from fastapi import APIRouter, Depends

from sign_inventory.core.container import get_connectivity, get_sync_queue_service
from sign_inventory.modules.connectivity.monitor import ConnectivityMonitor
from .schemas import DrainResult, SyncQueueItem, SyncStatusResponse
from .service import SyncQueueService

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    sync_queue: SyncQueueService = Depends(get_sync_queue_service),
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """Queued item count shown as the "waiting to sync" indicator."""
    return SyncStatusResponse(online=connectivity.is_online, queued=await sync_queue.count())


@router.get("/queue", response_model=List[SyncQueueItem])
async def get_queue(sync_queue: SyncQueueService = Depends(get_sync_queue_service)):
    return await sync_queue.list_items()


@router.post("/drain", response_model=DrainResult)
async def drain(sync_queue: SyncQueueService = Depends(get_sync_queue_service)):
    """
    Replay the queue now and wait for the result.
    """
    return await sync_queue.drain()


@router.post("/request", status_code=202)
async def request_sync(connectivity: ConnectivityMonitor = Depends(get_connectivity)):
    """
    Sync request from a background context (service worker message).
    The drain runs in the background.
    """
    connectivity.request_sync("service-worker")
    return {"message": "Sync requested"}
