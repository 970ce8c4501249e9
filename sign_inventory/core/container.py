"""
Service container - builds the core services around one LocalStore.

The application factory owns the container: it is created at startup,
stored on app.state and closed on shutdown. Routers reach services through
the Depends helpers below.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Request

from sign_inventory.core.config import Config
from sign_inventory.core.db.engine import LocalStore
from sign_inventory.modules.catalog.service import CatalogCacheService
from sign_inventory.modules.connectivity.monitor import ConnectivityMonitor
from sign_inventory.modules.drafts.service import DraftsService
from sign_inventory.modules.inventory.service import InventoryService
from sign_inventory.modules.notifications.service import NotificationCenter
from sign_inventory.modules.remote.client import RemoteDataService
from sign_inventory.modules.sync_queue.service import SyncQueueService


@dataclass
class ServiceContainer:
    store: LocalStore
    remote: RemoteDataService
    notifications: NotificationCenter
    catalog: CatalogCacheService
    drafts: DraftsService
    sync_queue: SyncQueueService
    connectivity: ConnectivityMonitor
    inventory: InventoryService

    @classmethod
    def build(
        cls,
        settings: Config,
        store: Optional[LocalStore] = None,
        remote: Optional[RemoteDataService] = None,
    ) -> "ServiceContainer":
        store = store or LocalStore(settings.database_url)
        remote = remote or RemoteDataService(
            settings.supabase_url,
            settings.supabase_anon_key,
            access_token=settings.supabase_access_token,
            timeout=settings.remote_timeout_seconds,
        )
        notifications = NotificationCenter(max_size=settings.notification_buffer_size)
        sync_queue = SyncQueueService(store, remote)
        drafts = DraftsService(store)
        connectivity = ConnectivityMonitor(
            sync_queue,
            notifications,
            reachability_check=remote.ping,
            background_interval=settings.background_sync_interval_seconds,
        )
        return cls(
            store=store,
            remote=remote,
            notifications=notifications,
            catalog=CatalogCacheService(
                store, remote, ttl=timedelta(hours=settings.catalog_ttl_hours)
            ),
            drafts=drafts,
            sync_queue=sync_queue,
            connectivity=connectivity,
            inventory=InventoryService(
                remote, sync_queue, drafts, connectivity, notifications
            ),
        )

    async def close(self) -> None:
        await self.connectivity.stop()
        await self.remote.close()
        await self.store.close()


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_catalog_service(request: Request) -> CatalogCacheService:
    return get_container(request).catalog


def get_drafts_service(request: Request) -> DraftsService:
    return get_container(request).drafts


def get_sync_queue_service(request: Request) -> SyncQueueService:
    return get_container(request).sync_queue


def get_connectivity(request: Request) -> ConnectivityMonitor:
    return get_container(request).connectivity


def get_inventory_service(request: Request) -> InventoryService:
    return get_container(request).inventory


def get_notifications(request: Request) -> NotificationCenter:
    return get_container(request).notifications
