"""
Connectivity Router - platform online/offline events
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sign_inventory.core.container import get_connectivity
from .monitor import ConnectivityMonitor

router = APIRouter(prefix="/connectivity", tags=["Connectivity"])


class ConnectivityDto(BaseModel):
    online: bool


class ConnectivityResponse(BaseModel):
    online: bool
    changed: bool = False
    background_sync: bool


@router.get("", response_model=ConnectivityResponse)
async def get_connectivity_state(
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    return ConnectivityResponse(
        online=connectivity.is_online,
        background_sync=connectivity.background_sync_registered,
    )


@router.post("", response_model=ConnectivityResponse)
async def set_connectivity_state(
    dto: ConnectivityDto,
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """
    Report a connectivity change from the platform.
    Going online starts a background drain of the sync queue.
    """
    changed = connectivity.set_online(dto.online)
    return ConnectivityResponse(
        online=connectivity.is_online,
        changed=changed,
        background_sync=connectivity.background_sync_registered,
    )
