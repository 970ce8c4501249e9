"""
Catalog Router - reference data for the selection and checklist screens
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sign_inventory.core.container import get_catalog_service, get_connectivity
from sign_inventory.modules.connectivity.monitor import ConnectivityMonitor
from .schemas import (
    Area,
    CatalogResponse,
    DownloadForOfflineDto,
    OfflineStatusResponse,
    Site,
)
from .service import CatalogCacheService

router = APIRouter(tags=["Catalog"])


@router.get("/sites", response_model=List[Site])
async def get_sites(
    catalog: CatalogCacheService = Depends(get_catalog_service),
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """
    List sites. Served from the remote service when online, from the
    cache otherwise.
    """
    return await catalog.load_sites(online=connectivity.is_online)


@router.get("/sites/{site_id}/areas", response_model=List[Area])
async def get_areas(
    site_id: str,
    catalog: CatalogCacheService = Depends(get_catalog_service),
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """List the areas of a site."""
    return await catalog.load_areas(site_id, online=connectivity.is_online)


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(
    site_id: str = Query(..., description="Site to load"),
    area_id: Optional[str] = Query(None, description="Area to load, omit for the whole site"),
    area_name: Optional[str] = Query(None, description="Area name used to filter the remote catalog"),
    sort_by: str = Query("sign_number", description="sign_number, sign_type_code or description"),
    catalog: CatalogCacheService = Depends(get_catalog_service),
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
):
    """
    Sign catalog for a checklist.

    The response says whether the signs came from the remote service, the
    offline cache, or nowhere (offline with no valid download).
    """
    return await catalog.load_catalog(
        site_id,
        area_id=area_id,
        area_name=area_name,
        online=connectivity.is_online,
        sort_by=sort_by,
    )


@router.post("/offline/download", response_model=OfflineStatusResponse, status_code=201)
async def download_for_offline(
    dto: DownloadForOfflineDto,
    catalog: CatalogCacheService = Depends(get_catalog_service),
):
    """
    Pre-stage a site/area for field work before losing connectivity.
    """
    await catalog.download_area(dto.site_id, dto.site_name, dto.area_id, dto.area_name)
    return OfflineStatusResponse(
        site_id=dto.site_id,
        area_id=dto.area_id,
        downloaded=await catalog.is_downloaded(dto.site_id, dto.area_id),
        cached_at=await catalog.get_snapshot_time(dto.site_id, dto.area_id),
    )


@router.get("/offline/status", response_model=OfflineStatusResponse)
async def get_offline_status(
    site_id: str,
    area_id: Optional[str] = None,
    catalog: CatalogCacheService = Depends(get_catalog_service),
):
    """Whether a usable offline copy exists for the site/area."""
    cached_at = await catalog.get_snapshot_time(site_id, area_id)
    return OfflineStatusResponse(
        site_id=site_id,
        area_id=area_id,
        downloaded=cached_at is not None,
        cached_at=cached_at,
    )
