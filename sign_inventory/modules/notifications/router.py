from typing import List

from fastapi import APIRouter, Depends

from sign_inventory.core.container import get_notifications
from .service import Notification, NotificationCenter

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[Notification])
async def pop_notifications(
    notifications: NotificationCenter = Depends(get_notifications),
):
    """Pending transient notifications; each is returned once."""
    return notifications.pop_all()
