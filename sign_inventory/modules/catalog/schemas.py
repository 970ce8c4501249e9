"""
Catalog DTOs - reference data for signs, sites and areas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class SignCatalogEntry(BaseModel):
    """One physical sign expected at a site"""

    id: str
    site_id: str
    area_id: Optional[str] = None
    sign_number: str
    sign_description_id: Optional[str] = None
    side_a_message: Optional[str] = None
    side_b_message: Optional[str] = None

    # Free text carried over from the original CSV import
    original_csv_notes: Optional[str] = None
    original_csv_level_no: Optional[str] = None
    original_csv_location_plan: Optional[str] = None

    # Joined from sign_descriptions
    description: Optional[str] = None
    sign_type_code: Optional[str] = None

    model_config = {"from_attributes": True}


class Site(BaseModel):
    id: str
    name: str
    location: Optional[str] = None

    model_config = {"from_attributes": True}


class Area(BaseModel):
    id: str
    site_id: str
    # The remote table calls this column area_name
    name: str = Field(..., validation_alias=AliasChoices("name", "area_name"))

    model_config = {"from_attributes": True}


class CatalogResponse(BaseModel):
    """Catalog as served to the checklist screen"""

    site_id: str
    area_id: Optional[str] = None
    source: str = Field(..., description="'remote', 'cache' or 'none'")
    signs: List[SignCatalogEntry]


class DownloadForOfflineDto(BaseModel):
    """DTO for staging an area for offline field work"""

    site_id: str = Field(..., min_length=1)
    site_name: str = Field(..., min_length=1)
    area_id: Optional[str] = None
    area_name: Optional[str] = None


class OfflineStatusResponse(BaseModel):
    site_id: str
    area_id: Optional[str] = None
    downloaded: bool
    cached_at: Optional[datetime] = None
