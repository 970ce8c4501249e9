"""
Shared fixtures: a file-backed local store per test, a controllable clock
and an in-memory stand-in for the remote data service.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from sign_inventory.core.db.engine import LocalStore
from sign_inventory.modules.catalog.schemas import Area, SignCatalogEntry, Site
from sign_inventory.modules.catalog.service import CatalogCacheService
from sign_inventory.modules.connectivity.monitor import ConnectivityMonitor
from sign_inventory.modules.drafts.schemas import DraftSign, SignStatus
from sign_inventory.modules.drafts.service import DraftsService
from sign_inventory.modules.inventory.service import InventoryService
from sign_inventory.modules.notifications.service import NotificationCenter
from sign_inventory.modules.sync_queue.schemas import (
    InventoryLogRecord,
    PendingInventoryRecord,
)
from sign_inventory.modules.sync_queue.service import SyncQueueService


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeRemote:
    """
    Records every call. Failures are scripted per call: each entry of
    insert_errors is consumed by one insert (None means succeed).
    """

    def __init__(self):
        self.sites: List[Site] = []
        self.areas: Dict[str, List[Area]] = {}
        self.catalog: Dict[str, List[SignCatalogEntry]] = {}

        self.fetch_error: Optional[Exception] = None
        self.session_error: Optional[Exception] = None
        self.insert_errors: List[Optional[Exception]] = []
        self.reachable = True

        self.catalog_calls: List[tuple] = []
        self.sessions: List[tuple] = []
        self.inserted: List[List[PendingInventoryRecord]] = []
        self.insert_calls = 0
        self.closed = False

    async def ping(self) -> bool:
        return self.reachable

    async def fetch_sites(self) -> List[Site]:
        if self.fetch_error:
            raise self.fetch_error
        return list(self.sites)

    async def fetch_areas(self, site_id: str) -> List[Area]:
        if self.fetch_error:
            raise self.fetch_error
        return list(self.areas.get(site_id, []))

    async def fetch_catalog(self, site_id, area_filter=None, sort_by="sign_number"):
        self.catalog_calls.append((site_id, area_filter, sort_by))
        if self.fetch_error:
            raise self.fetch_error
        return list(self.catalog.get(site_id, []))

    async def create_session(self, site_id: str, label: Optional[str] = None) -> str:
        if self.session_error:
            raise self.session_error
        self.sessions.append((site_id, label))
        return f"session-{len(self.sessions)}"

    async def insert_inventory_records(self, records):
        self.insert_calls += 1
        if self.insert_errors:
            error = self.insert_errors.pop(0)
            if error is not None:
                raise error
        self.inserted.append(list(records))
        return [
            InventoryLogRecord(id=index, **record.model_dump())
            for index, record in enumerate(records, start=1)
        ]

    async def close(self) -> None:
        self.closed = True


def make_entries(site_id: str, count: int = 3, area_id: Optional[str] = None):
    return [
        SignCatalogEntry(
            id=f"{site_id}-sign-{n}",
            site_id=site_id,
            area_id=area_id,
            sign_number=f"S{n:03d}",
            sign_description_id=f"desc-{n}",
            description=f"Sign {n}",
            sign_type_code="EXIT" if n % 2 else "FIRE",
        )
        for n in range(1, count + 1)
    ]


def make_draft_signs(entries, statuses) -> List[DraftSign]:
    """Draft signs for the entries; statuses is a list of SignStatus or None."""
    return [
        DraftSign(
            id=entry.id,
            sign_number=entry.sign_number,
            sign_description_id=entry.sign_description_id,
            sign_type_code=entry.sign_type_code,
            description=entry.description,
            status=status,
        )
        for entry, status in zip(entries, statuses)
    ]


def make_records(session_id: str, site_id: str = "S1", count: int = 2):
    return [
        PendingInventoryRecord(
            session_id=session_id,
            site_id=site_id,
            inventory_type=SignStatus.present,
            sign_number=f"S{n:03d}",
            sign_description_id=f"desc-{n}",
            notes=f"batch {session_id}",
        )
        for n in range(1, count + 1)
    ]


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 9, 0, 0))


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'sign_inventory.db'}"


@pytest.fixture
async def store(db_url):
    store = LocalStore(db_url)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def notifications(clock):
    return NotificationCenter(max_size=20, clock=clock)


@pytest.fixture
def catalog(store, remote, clock):
    return CatalogCacheService(store, remote, clock=clock)


@pytest.fixture
def drafts(store, clock):
    return DraftsService(store, clock=clock)


@pytest.fixture
def sync_queue(store, remote, clock):
    return SyncQueueService(store, remote, clock=clock)


@pytest.fixture
async def connectivity(sync_queue, notifications):
    monitor = ConnectivityMonitor(sync_queue, notifications, background_interval=0)
    yield monitor
    await monitor.stop()


@pytest.fixture
def inventory(remote, sync_queue, drafts, connectivity, notifications, clock):
    return InventoryService(
        remote, sync_queue, drafts, connectivity, notifications, clock=clock
    )
