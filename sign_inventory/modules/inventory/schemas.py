"""
Inventory save DTOs
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, Field

from sign_inventory.modules.drafts.schemas import DraftSign


class SaveMode(str, enum.Enum):
    online = "online"
    queued = "queued"


class SaveInventoryDto(BaseModel):
    """DTO for the explicit Save action on the checklist"""

    site_id: str = Field(..., min_length=1)
    site_name: Optional[str] = None
    area_id: Optional[str] = None
    area_name: Optional[str] = None
    signs: List[DraftSign]
    notes: Optional[str] = Field(None, description="Optional note attached to every record")


class SaveInventoryResponse(BaseModel):
    mode: SaveMode
    session_id: str
    records: int
    queued: int = Field(..., description="Items waiting in the sync queue after this save")
