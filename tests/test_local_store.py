"""
Tests for the local store: opening, versioned migrations and recovery.
"""

import sqlite3

import pytest

from sign_inventory.core.db.engine import LocalStore
from sign_inventory.core.db.migrations import MIGRATIONS, SCHEMA_VERSION, MigrationAction
from sign_inventory.core.exceptions import StorageUnavailable
from sign_inventory.modules.catalog.service import CatalogCacheService
from sign_inventory.modules.drafts.schemas import SignStatus
from sign_inventory.modules.drafts.service import DraftsService

from .conftest import make_draft_signs, make_entries


def _set_user_version(path, version):
    conn = sqlite3.connect(path)
    try:
        conn.execute(f"PRAGMA user_version = {version}")
        conn.commit()
    finally:
        conn.close()


def _table_names(path):
    conn = sqlite3.connect(path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {row[0] for row in rows}


class TestMigrationSteps:
    def test_steps_are_contiguous(self):
        versions = [(step.from_version, step.to_version) for step in MIGRATIONS]
        assert versions == [(0, 1), (1, 2), (2, 3), (3, 4)]
        assert SCHEMA_VERSION == 4

    def test_only_catalog_snapshots_is_recreated(self):
        recreated = [step for step in MIGRATIONS if step.action is MigrationAction.recreate]
        assert [step.tables for step in recreated] == [("catalog_snapshots",)]


class TestLocalStore:
    async def test_open_creates_every_table(self, store):
        assert store.is_open
        assert await store.schema_version() == SCHEMA_VERSION
        assert _table_names(store.db_path) >= {
            "catalog_snapshots",
            "cached_sites",
            "cached_areas",
            "active_inventory",
            "sync_queue",
        }

    async def test_open_is_idempotent(self, store):
        await store.open()
        await store.open()
        assert await store.check_connection() is True

    async def test_in_memory_store_has_no_path(self):
        store = LocalStore("sqlite+aiosqlite:///:memory:")
        assert store.db_path is None
        await store.open()
        try:
            assert await store.schema_version() == SCHEMA_VERSION
        finally:
            await store.close()

    async def test_newer_schema_is_rebuilt_empty(self, db_url, store, clock):
        drafts = DraftsService(store, clock=clock)
        await drafts.save_draft("S1", None, make_draft_signs(make_entries("S1"), [SignStatus.present]))
        path = store.db_path
        await store.close()

        _set_user_version(path, 99)

        reopened = LocalStore(db_url)
        await reopened.open()
        try:
            assert await reopened.schema_version() == SCHEMA_VERSION
            assert await DraftsService(reopened, clock=clock).count() == 0
        finally:
            await reopened.close()

    async def test_upgrade_from_v3_keeps_drafts_and_drops_catalog(self, db_url, store, clock):
        drafts = DraftsService(store, clock=clock)
        entries = make_entries("S1")
        await drafts.save_draft("S1", "A1", make_draft_signs(entries, [SignStatus.missing]))
        await CatalogCacheService(store, remote=None, clock=clock).cache_catalog("S1", "A1", entries)
        path = store.db_path
        await store.close()

        _set_user_version(path, 3)

        reopened = LocalStore(db_url)
        await reopened.open()
        try:
            assert await reopened.schema_version() == SCHEMA_VERSION
            draft = await DraftsService(reopened, clock=clock).get_draft("S1", "A1")
            assert draft is not None
            assert draft.signs[0].status is SignStatus.missing

            catalog = CatalogCacheService(reopened, remote=None, clock=clock)
            assert await catalog.get_cached_catalog("S1", "A1") is None
        finally:
            await reopened.close()

    async def test_corrupt_file_is_unavailable_until_reset(self, tmp_path):
        path = tmp_path / "broken.db"
        path.write_bytes(b"this is not a sqlite database " * 100)

        store = LocalStore(f"sqlite+aiosqlite:///{path}")
        with pytest.raises(StorageUnavailable):
            await store.open()
        assert not store.is_open
        assert await store.check_connection() is False

        await store.reset()
        try:
            assert store.is_open
            assert await store.check_connection() is True
            assert await store.schema_version() == SCHEMA_VERSION
        finally:
            await store.close()

    async def test_reset_discards_everything(self, store, clock):
        drafts = DraftsService(store, clock=clock)
        await drafts.save_draft("S1", None, make_draft_signs(make_entries("S1"), [SignStatus.present]))

        await store.reset()

        assert await drafts.count() == 0
