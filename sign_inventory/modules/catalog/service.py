"""
CatalogCacheService - read-through cache for catalog, site and area data.
"""

import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from sign_inventory.core.db.engine import LocalStore
from sign_inventory.core.exceptions import (
    DatabaseError,
    NetworkError,
    ServiceError,
    StorageUnavailable,
)
from sign_inventory.core.utils import catalog_key, utc_now
from sign_inventory.modules.remote.client import RemoteDataService
from sign_inventory.modules.sync_queue.models import SyncQueueEntry
from .models import CachedArea, CachedSite, CatalogSnapshot
from .schemas import Area, CatalogResponse, SignCatalogEntry, Site

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_TTL = timedelta(hours=24)


class CatalogCacheService:
    """
    Cache manager for reference data.

    Catalog snapshots expire after the TTL and are then treated as absent
    (left in place until the next write overwrites them). Sites and areas
    never expire: offline users need them for navigation indefinitely.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteDataService,
        ttl: timedelta = DEFAULT_CATALOG_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.remote = remote
        self.ttl = ttl
        self.clock = clock

    def _is_fresh(self, snapshot: CatalogSnapshot) -> bool:
        return self.clock() - snapshot.cached_at < self.ttl

    # ------------------------------------------------------------------
    # Catalog snapshots
    # ------------------------------------------------------------------

    async def cache_catalog(
        self,
        site_id: str,
        area_id: Optional[str],
        entries: List[SignCatalogEntry],
    ) -> None:
        """
        Overwrite the snapshot for (site_id, area_id) and stamp it now.

        Args:
            site_id: Site the catalog belongs to
            area_id: Area within the site, None for the whole site
            entries: Complete catalog; replaces whatever was cached
        """
        cached_at = self.clock()

        def _cache(db: Session) -> None:
            _put_snapshot(db, site_id, area_id, entries, cached_at)

        await self.store.run(_cache)
        logger.debug("Cached %d signs for %s", len(entries), catalog_key(site_id, area_id))

    async def get_cached_catalog(
        self, site_id: str, area_id: Optional[str] = None
    ) -> Optional[List[SignCatalogEntry]]:
        """
        Get the cached catalog for (site_id, area_id).

        Returns:
            The entries, or None when nothing is cached or the snapshot expired
        """

        def _get(db: Session) -> Optional[List[SignCatalogEntry]]:
            snapshot = db.get(CatalogSnapshot, catalog_key(site_id, area_id))
            if snapshot is None or not self._is_fresh(snapshot):
                return None
            return [SignCatalogEntry.model_validate(sign) for sign in snapshot.signs]

        return await self.store.run(_get)

    async def get_snapshot_time(
        self, site_id: str, area_id: Optional[str] = None
    ) -> Optional[datetime]:
        """When the non-expired, non-empty snapshot was cached, else None."""

        def _get(db: Session) -> Optional[datetime]:
            snapshot = db.get(CatalogSnapshot, catalog_key(site_id, area_id))
            if snapshot is None or not snapshot.signs or not self._is_fresh(snapshot):
                return None
            return snapshot.cached_at

        return await self.store.run(_get)

    async def is_downloaded(self, site_id: str, area_id: Optional[str] = None) -> bool:
        """True iff a non-expired, non-empty snapshot exists for the key."""
        return await self.get_snapshot_time(site_id, area_id) is not None

    # ------------------------------------------------------------------
    # Sites and areas
    # ------------------------------------------------------------------

    async def cache_site(self, site: Site) -> None:
        cached_at = self.clock()

        def _cache(db: Session) -> None:
            _put_site(db, site, cached_at)

        await self.store.run(_cache)

    async def cache_sites(self, sites: List[Site]) -> None:
        cached_at = self.clock()

        def _cache(db: Session) -> None:
            for site in sites:
                _put_site(db, site, cached_at)

        await self.store.run(_cache)

    async def get_cached_sites(self) -> List[Site]:
        def _get(db: Session) -> List[Site]:
            rows = db.execute(select(CachedSite).order_by(CachedSite.name)).scalars().all()
            return [Site.model_validate(row) for row in rows]

        return await self.store.run(_get)

    async def cache_areas(self, site_id: str, areas: List[Area]) -> None:
        """Replace the cached areas of a site with the given list."""
        cached_at = self.clock()

        def _cache(db: Session) -> None:
            db.execute(delete(CachedArea).where(CachedArea.site_id == site_id))
            for area in areas:
                _put_area(db, area, cached_at)

        await self.store.run(_cache)

    async def get_cached_areas(self, site_id: str) -> List[Area]:
        def _get(db: Session) -> List[Area]:
            query = (
                select(CachedArea)
                .where(CachedArea.site_id == site_id)
                .order_by(CachedArea.name)
            )
            return [Area.model_validate(row) for row in db.execute(query).scalars().all()]

        return await self.store.run(_get)

    # ------------------------------------------------------------------
    # Composite operations
    # ------------------------------------------------------------------

    async def download_for_offline(
        self,
        site_id: str,
        site_name: str,
        area_id: Optional[str],
        area_name: Optional[str],
        entries: List[SignCatalogEntry],
    ) -> None:
        """
        Stage a site/area for field work: cache the site, the area and the
        catalog snapshot in one transaction.
        """
        cached_at = self.clock()

        def _download(db: Session) -> None:
            _put_site(db, Site(id=site_id, name=site_name), cached_at)
            if area_id:
                _put_area(
                    db,
                    Area(id=area_id, site_id=site_id, name=area_name or area_id),
                    cached_at,
                )
            _put_snapshot(db, site_id, area_id, entries, cached_at)

        await self.store.run(_download)
        logger.info(
            "📥 Downloaded %d signs for offline use (%s)",
            len(entries),
            catalog_key(site_id, area_id),
        )

    async def download_area(
        self,
        site_id: str,
        site_name: str,
        area_id: Optional[str] = None,
        area_name: Optional[str] = None,
    ) -> List[SignCatalogEntry]:
        """
        Fetch the catalog from the remote service and stage it offline.

        Raises:
            NetworkError: If the remote service is unreachable
            ServiceError: If the remote service rejects the request
        """
        entries = await self.remote.fetch_catalog(site_id, area_filter=area_name)
        await self.download_for_offline(site_id, site_name, area_id, area_name, entries)
        return entries

    async def clear_all(self) -> None:
        """
        Clear snapshots, sites, areas and the sync queue together.
        Queued offline saves are lost; drafts are kept.
        """

        def _clear(db: Session) -> None:
            for model in (CatalogSnapshot, CachedSite, CachedArea, SyncQueueEntry):
                db.execute(delete(model))

        await self.store.run(_clear)
        logger.warning("Local caches and sync queue cleared")

    # ------------------------------------------------------------------
    # Read-through loaders
    # ------------------------------------------------------------------

    async def _write_through(self, write: Awaitable[None], what: str) -> None:
        """Cache a fresh remote result; a broken store must not hide it."""
        try:
            await write
        except (StorageUnavailable, DatabaseError) as exc:
            logger.warning("Could not cache %s, serving remote data only: %s", what, exc.detail)

    async def load_catalog(
        self,
        site_id: str,
        area_id: Optional[str] = None,
        area_name: Optional[str] = None,
        online: bool = True,
        sort_by: str = "sign_number",
    ) -> CatalogResponse:
        """
        Catalog for the checklist screen.

        Online: fetch from the remote service and refresh the snapshot,
        falling back to the cache if the fetch fails. Offline: only a
        non-expired snapshot is used; no partial fetch is attempted.
        """
        if online:
            try:
                entries = await self.remote.fetch_catalog(
                    site_id, area_filter=area_name, sort_by=sort_by
                )
            except (NetworkError, ServiceError) as exc:
                logger.warning("Catalog fetch failed, falling back to cache: %s", exc.detail)
            else:
                await self._write_through(
                    self.cache_catalog(site_id, area_id, entries), catalog_key(site_id, area_id)
                )
                return CatalogResponse(
                    site_id=site_id, area_id=area_id, source="remote", signs=entries
                )

        cached = await self.get_cached_catalog(site_id, area_id)
        if cached is None:
            return CatalogResponse(site_id=site_id, area_id=area_id, source="none", signs=[])
        return CatalogResponse(site_id=site_id, area_id=area_id, source="cache", signs=cached)

    async def load_sites(self, online: bool = True) -> List[Site]:
        if online:
            try:
                sites = await self.remote.fetch_sites()
            except (NetworkError, ServiceError) as exc:
                logger.warning("Site fetch failed, falling back to cache: %s", exc.detail)
            else:
                await self._write_through(self.cache_sites(sites), "sites")
                return sites
        return await self.get_cached_sites()

    async def load_areas(self, site_id: str, online: bool = True) -> List[Area]:
        if online:
            try:
                areas = await self.remote.fetch_areas(site_id)
            except (NetworkError, ServiceError) as exc:
                logger.warning("Area fetch failed, falling back to cache: %s", exc.detail)
            else:
                await self._write_through(self.cache_areas(site_id, areas), f"areas of {site_id}")
                return areas
        return await self.get_cached_areas(site_id)


def _put_snapshot(
    db: Session,
    site_id: str,
    area_id: Optional[str],
    entries: List[SignCatalogEntry],
    cached_at: datetime,
) -> None:
    db.merge(
        CatalogSnapshot(
            key=catalog_key(site_id, area_id),
            site_id=site_id,
            area_id=area_id,
            signs=[entry.model_dump(mode="json") for entry in entries],
            cached_at=cached_at,
        )
    )


def _put_site(db: Session, site: Site, cached_at: datetime) -> None:
    db.merge(
        CachedSite(id=site.id, name=site.name, location=site.location, cached_at=cached_at)
    )


def _put_area(db: Session, area: Area, cached_at: datetime) -> None:
    db.merge(
        CachedArea(id=area.id, site_id=area.site_id, name=area.name, cached_at=cached_at)
    )
