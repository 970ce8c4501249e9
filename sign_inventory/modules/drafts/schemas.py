"""
Drafts DTOs (Data Transfer Objects)
"""

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SignStatus(str, enum.Enum):
    """Status a user can mark a sign with. Unset is represented by None."""

    present = "present"
    missing = "missing"
    damaged = "damaged"


class DraftSign(BaseModel):
    """
    Frozen copy of a catalog entry plus the user's mark.
    Self-contained so a draft can be resumed after the catalog expired.
    """

    id: str
    sign_number: str
    sign_description_id: Optional[str] = None
    sign_type_code: Optional[str] = None
    description: Optional[str] = None
    side_a_message: Optional[str] = None
    side_b_message: Optional[str] = None
    status: Optional[SignStatus] = None


class SaveDraftDto(BaseModel):
    """DTO for autosaving the checklist after a status change"""

    site_id: str = Field(..., min_length=1)
    site_name: Optional[str] = None
    area_id: Optional[str] = None
    area_name: Optional[str] = None
    signs: List[DraftSign]


class DraftResponse(BaseModel):
    """Response model for an active inventory draft"""

    id: str
    site_id: str
    site_name: Optional[str] = None
    area_id: Optional[str] = None
    area_name: Optional[str] = None
    signs: List[DraftSign]
    created_at: datetime
    last_modified: datetime

    model_config = {"from_attributes": True}

    @property
    def marked_count(self) -> int:
        return sum(1 for sign in self.signs if sign.status is not None)
