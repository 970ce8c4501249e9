"""
InventoryService - the explicit Save action of the checklist.
"""

import logging
from datetime import datetime
from typing import Callable, List

from fastapi import HTTPException

from sign_inventory.core.exceptions import (
    DatabaseError,
    NetworkError,
    StorageUnavailable,
    ValidationError,
)
from sign_inventory.core.utils import draft_key, epoch_millis, utc_now
from sign_inventory.modules.connectivity.monitor import ConnectivityMonitor
from sign_inventory.modules.drafts.schemas import DraftSign
from sign_inventory.modules.drafts.service import DraftsService
from sign_inventory.modules.notifications.service import (
    NotificationCenter,
    NotificationLevel,
)
from sign_inventory.modules.remote.client import RemoteDataService
from sign_inventory.modules.sync_queue.schemas import PendingInventoryRecord
from sign_inventory.modules.sync_queue.service import SyncQueueService
from .schemas import SaveInventoryDto, SaveInventoryResponse, SaveMode

logger = logging.getLogger(__name__)


def build_records(
    session_id: str, site_id: str, signs: List[DraftSign], notes: str | None = None
) -> List[PendingInventoryRecord]:
    """One record per marked sign; unmarked signs are skipped."""
    return [
        PendingInventoryRecord(
            session_id=session_id,
            site_id=site_id,
            inventory_type=sign.status,
            sign_number=sign.sign_number,
            sign_description_id=sign.sign_description_id,
            quantity=1,
            notes=notes,
        )
        for sign in signs
        if sign.status is not None
    ]


class InventoryService:
    """
    Saves a checklist either straight to the remote service (online) or
    into the sync queue (offline). The draft is deleted only after one of
    the two has been confirmed.
    """

    def __init__(
        self,
        remote: RemoteDataService,
        sync_queue: SyncQueueService,
        drafts: DraftsService,
        connectivity: ConnectivityMonitor,
        notifications: NotificationCenter,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.remote = remote
        self.sync_queue = sync_queue
        self.drafts = drafts
        self.connectivity = connectivity
        self.notifications = notifications
        self.clock = clock

    async def save_inventory(self, dto: SaveInventoryDto) -> SaveInventoryResponse:
        """
        Save the marked signs of a checklist.

        Online: create a session, then insert every record in one batch. If
        the service turns out to be unreachable the batch is queued instead.
        Offline: queue the batch under a local session id.

        Raises:
            ValidationError: If no sign has been marked
            ServiceError: If the remote service rejected the save
            QueueWriteFailure: If the offline queue could not be written
        """
        if not any(sign.status is not None for sign in dto.signs):
            raise ValidationError("No signs have been recorded")

        try:
            if self.connectivity.is_online:
                try:
                    response = await self._save_online(dto)
                except NetworkError as exc:
                    logger.warning("Online save failed, queueing instead: %s", exc.detail)
                    self.connectivity.set_online(False)
                    response = await self._save_offline(dto)
            else:
                response = await self._save_offline(dto)
        except HTTPException:
            self.notifications.push(NotificationLevel.error, "Failed to save inventory")
            raise

        try:
            await self.drafts.delete_draft(dto.site_id, dto.area_id)
        except (StorageUnavailable, DatabaseError) as exc:
            # Records are already saved or queued at this point
            logger.error(
                "Saved %s but could not clear its draft: %s",
                draft_key(dto.site_id, dto.area_id),
                exc.detail,
            )
        return response

    async def _save_online(self, dto: SaveInventoryDto) -> SaveInventoryResponse:
        label = f"Inventory - {self.clock().strftime('%Y-%m-%d %H:%M:%S')}"
        session_id = await self.remote.create_session(dto.site_id, label)
        records = build_records(session_id, dto.site_id, dto.signs, dto.notes)

        await self.remote.insert_inventory_records(records)

        logger.info("Saved %d records online (session %s)", len(records), session_id)
        self.notifications.push(NotificationLevel.success, "Inventory saved successfully!")
        return SaveInventoryResponse(
            mode=SaveMode.online,
            session_id=session_id,
            records=len(records),
            queued=await self.sync_queue.count(),
        )

    async def _save_offline(self, dto: SaveInventoryDto) -> SaveInventoryResponse:
        session_id = f"offline-{epoch_millis(self.clock())}"
        records = build_records(session_id, dto.site_id, dto.signs, dto.notes)

        await self.sync_queue.enqueue(records)

        self.notifications.push(
            NotificationLevel.info,
            "Inventory saved offline. Will sync when connection is restored.",
        )
        return SaveInventoryResponse(
            mode=SaveMode.queued,
            session_id=session_id,
            records=len(records),
            queued=await self.sync_queue.count(),
        )
