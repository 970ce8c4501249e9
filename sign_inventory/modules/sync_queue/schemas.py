"""
Sync queue DTOs.

Queue payloads are tagged by QueueItemType; PAYLOAD_TYPES maps each tag to
the model its JSON is parsed into, so a payload is typed from enqueue to
replay.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, Field

from sign_inventory.modules.drafts.schemas import SignStatus
from .models import QueueItemType


class PendingInventoryRecord(BaseModel):
    """Inventory log row before the remote service assigns id and created_at"""

    session_id: str
    site_id: str
    inventory_type: SignStatus
    sign_number: str
    sign_description_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    notes: Optional[str] = None


class InventoryLogRecord(PendingInventoryRecord):
    """Inventory log row as confirmed by the remote service"""

    id: Union[str, int]
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


class InventoryRecordBatch(BaseModel):
    """Payload of one save action: every record it produced"""

    type: Literal["inventory_records"] = "inventory_records"
    records: List[PendingInventoryRecord] = Field(..., min_length=1)


PAYLOAD_TYPES: Dict[QueueItemType, Type[BaseModel]] = {
    QueueItemType.inventory_records: InventoryRecordBatch,
}


class SyncQueueItem(BaseModel):
    id: int
    type: QueueItemType
    payload: InventoryRecordBatch
    timestamp: datetime


class DrainResult(BaseModel):
    attempted: int = 0
    synced: int = 0
    failed: int = 0
    remaining: int = 0


class SyncStatusResponse(BaseModel):
    online: bool
    queued: int
