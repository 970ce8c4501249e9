"""
Tests for the Save action: online insert, offline queueing and the draft
lifecycle around both.
"""

import pytest

from sign_inventory.core.exceptions import (
    DatabaseError,
    NetworkError,
    QueueWriteFailure,
    ServiceError,
    ValidationError,
)
from sign_inventory.core.utils import epoch_millis
from sign_inventory.modules.drafts.schemas import SignStatus
from sign_inventory.modules.inventory.schemas import SaveInventoryDto, SaveMode
from sign_inventory.modules.inventory.service import build_records
from sign_inventory.modules.notifications.service import NotificationLevel

from .conftest import make_draft_signs, make_entries

FIVE_MARKS = [
    SignStatus.present,
    SignStatus.missing,
    SignStatus.damaged,
    SignStatus.present,
    SignStatus.present,
]


def _dto(signs, area_id=None, notes=None):
    return SaveInventoryDto(site_id="S1", site_name="Head Office", area_id=area_id, signs=signs, notes=notes)


class TestBuildRecords:
    def test_unmarked_signs_are_skipped(self):
        signs = make_draft_signs(make_entries("S1", 3), [SignStatus.present, None, SignStatus.damaged])

        records = build_records("session-1", "S1", signs, notes="ground floor")

        assert [(r.sign_number, r.inventory_type) for r in records] == [
            ("S001", SignStatus.present),
            ("S003", SignStatus.damaged),
        ]
        assert all(r.quantity == 1 and r.notes == "ground floor" for r in records)
        assert {r.session_id for r in records} == {"session-1"}


class TestOfflineScenario:
    async def test_offline_save_then_reconnect(
        self, inventory, drafts, sync_queue, connectivity, remote, clock
    ):
        entries = make_entries("S1", 3)
        connectivity.set_online(False)

        # Two autosaves while marking
        await drafts.save_draft("S1", None, make_draft_signs(entries, [SignStatus.present, None, None]))
        signs = make_draft_signs(entries, [SignStatus.present, SignStatus.missing, None])
        await drafts.save_draft("S1", None, signs)
        assert await sync_queue.count() == 0

        response = await inventory.save_inventory(_dto(signs))

        assert response.mode is SaveMode.queued
        assert response.session_id == f"offline-{epoch_millis(clock())}"
        assert response.records == 2
        assert await sync_queue.count() == 1
        [item] = await sync_queue.list_items()
        assert [r.inventory_type for r in item.payload.records] == [
            SignStatus.present,
            SignStatus.missing,
        ]
        assert await drafts.get_draft("S1") is None
        assert remote.insert_calls == 0

        connectivity.set_online(True)
        await connectivity.wait_idle()

        assert await sync_queue.count() == 0
        assert len(remote.inserted) == 1
        assert remote.sessions == []


class TestOnlineSave:
    async def test_online_save_clears_draft(self, inventory, drafts, remote, notifications):
        signs = make_draft_signs(make_entries("S1", 5), FIVE_MARKS)
        await drafts.save_draft("S1", "A1", signs)

        response = await inventory.save_inventory(_dto(signs, area_id="A1"))

        assert response.mode is SaveMode.online
        assert response.session_id == "session-1"
        assert response.records == 5
        assert remote.sessions == [("S1", "Inventory - 2024-05-01 09:00:00")]
        assert [r.session_id for r in remote.inserted[0]] == ["session-1"] * 5
        assert await drafts.get_draft("S1", "A1") is None
        assert [n.message for n in notifications.pop_all()] == ["Inventory saved successfully!"]

    async def test_rejected_save_keeps_draft(self, inventory, drafts, remote, sync_queue, notifications):
        signs = make_draft_signs(make_entries("S1", 5), FIVE_MARKS)
        await drafts.save_draft("S1", None, signs)
        remote.insert_errors = [ServiceError("violates row-level security policy", upstream_status=403)]

        with pytest.raises(ServiceError):
            await inventory.save_inventory(_dto(signs))

        draft = await drafts.get_draft("S1")
        assert draft is not None
        assert draft.marked_count == 5
        assert await sync_queue.count() == 0
        [notification] = notifications.pop_all()
        assert notification.level is NotificationLevel.error

    async def test_unreachable_service_falls_back_to_queue(
        self, inventory, drafts, remote, sync_queue, connectivity
    ):
        signs = make_draft_signs(make_entries("S1", 5), FIVE_MARKS)
        await drafts.save_draft("S1", None, signs)
        remote.session_error = NetworkError("connection reset")

        response = await inventory.save_inventory(_dto(signs))

        assert response.mode is SaveMode.queued
        assert response.queued == 1
        assert connectivity.is_online is False
        assert await drafts.get_draft("S1") is None

    async def test_nothing_marked_is_rejected(self, inventory, sync_queue):
        signs = make_draft_signs(make_entries("S1", 3), [None, None, None])

        with pytest.raises(ValidationError):
            await inventory.save_inventory(_dto(signs))

        assert await sync_queue.count() == 0


class TestQueueFailure:
    async def test_queue_failure_keeps_draft(self, inventory, drafts, sync_queue, connectivity, monkeypatch):
        connectivity.set_online(False)
        signs = make_draft_signs(make_entries("S1", 2), [SignStatus.missing, SignStatus.present])
        await drafts.save_draft("S1", None, signs)

        async def broken_enqueue(records):
            raise QueueWriteFailure("disk full")

        monkeypatch.setattr(sync_queue, "enqueue", broken_enqueue)

        with pytest.raises(QueueWriteFailure):
            await inventory.save_inventory(_dto(signs))

        assert await drafts.get_draft("S1") is not None


class TestDraftCleanupFailure:
    async def test_saved_records_are_reported_even_if_draft_stays(
        self, inventory, drafts, remote, notifications, monkeypatch
    ):
        signs = make_draft_signs(make_entries("S1", 5), FIVE_MARKS)
        await drafts.save_draft("S1", "A1", signs)

        async def broken_delete(site_id, area_id=None):
            raise DatabaseError("disk I/O error")

        monkeypatch.setattr(drafts, "delete_draft", broken_delete)

        response = await inventory.save_inventory(_dto(signs, area_id="A1"))

        assert response.mode is SaveMode.online
        assert response.records == 5
        assert len(remote.inserted) == 1
        assert [n.message for n in notifications.pop_all()] == ["Inventory saved successfully!"]
