"""
SyncQueueService - durable queue of offline saves and its replayer.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List

from fastapi import HTTPException
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from sign_inventory.core.db.engine import LocalStore
from sign_inventory.core.exceptions import DatabaseError, QueueWriteFailure
from sign_inventory.core.utils import utc_now
from sign_inventory.modules.remote.client import RemoteDataService
from .models import QueueItemType, SyncQueueEntry
from .schemas import (
    PAYLOAD_TYPES,
    DrainResult,
    InventoryRecordBatch,
    PendingInventoryRecord,
    SyncQueueItem,
)

logger = logging.getLogger(__name__)


class SyncQueueService:
    """
    At-least-once delivery of writes made while offline.

    Items are replayed in enqueue order and each is removed only after the
    remote service confirms it. A failed item stays where it is and is
    retried on the next drain. There is no idempotency key: if the remote
    commits but the confirmation is lost, the next drain inserts the batch
    again.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteDataService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.remote = remote
        self.clock = clock
        self._drain_lock = asyncio.Lock()
        self._handlers: Dict[QueueItemType, Callable[[SyncQueueItem], Awaitable[None]]] = {
            QueueItemType.inventory_records: self._replay_inventory_records,
        }

    async def enqueue(self, records: List[PendingInventoryRecord]) -> int:
        """
        Append one save action's records to the queue.

        Args:
            records: Every record produced by the save

        Returns:
            int: Sequence id of the new queue item

        Raises:
            QueueWriteFailure: If the item could not be stored
        """
        batch = InventoryRecordBatch(records=records)
        timestamp = self.clock()

        def _enqueue(db: Session) -> int:
            entry = SyncQueueEntry(
                type=QueueItemType.inventory_records.value,
                payload=batch.model_dump(mode="json"),
                timestamp=timestamp,
            )
            db.add(entry)
            db.flush()
            return entry.id

        try:
            item_id = await self.store.run(_enqueue)
        except HTTPException as exc:
            logger.error("Failed to queue %d records for sync: %s", len(records), exc.detail)
            raise QueueWriteFailure(f"Failed to queue records for sync: {exc.detail}") from exc

        logger.info("Queued %d records for sync (item %s)", len(records), item_id)
        return item_id

    async def list_items(self) -> List[SyncQueueItem]:
        """Queued items in enqueue order."""

        def _list(db: Session) -> List[SyncQueueItem]:
            rows = db.execute(select(SyncQueueEntry).order_by(SyncQueueEntry.id)).scalars().all()
            return [_to_item(row) for row in rows]

        return await self.store.run(_list)

    async def count(self) -> int:
        def _count(db: Session) -> int:
            return db.execute(select(func.count()).select_from(SyncQueueEntry)).scalar_one()

        return await self.store.run(_count)

    async def _remove(self, item_id: int) -> None:
        def _delete(db: Session) -> None:
            db.execute(delete(SyncQueueEntry).where(SyncQueueEntry.id == item_id))

        await self.store.run(_delete)

    async def _replay_inventory_records(self, item: SyncQueueItem) -> None:
        await self.remote.insert_inventory_records(item.payload.records)

    async def drain(self) -> DrainResult:
        """
        Replay every queued item against the remote service.

        Failures are logged and the item is left for the next drain.
        Overlapping calls run one after another.
        """
        async with self._drain_lock:
            items = await self.list_items()
            result = DrainResult(attempted=len(items))

            for item in items:
                try:
                    await self._handlers[item.type](item)
                except HTTPException as exc:
                    result.failed += 1
                    logger.error("Failed to sync queued item %s: %s", item.id, exc.detail)
                    continue
                except Exception:
                    # One bad item must not stop the rest of the drain
                    result.failed += 1
                    logger.exception("Unexpected error syncing queued item %s", item.id)
                    continue

                try:
                    await self._remove(item.id)
                except DatabaseError as exc:
                    # Delivered but still queued; it will be sent again
                    result.failed += 1
                    logger.error("Synced item %s could not be removed: %s", item.id, exc.detail)
                    continue
                result.synced += 1

            result.remaining = await self.count()

        if result.attempted:
            logger.info(
                "🔄 Sync drain: %d synced, %d failed, %d remaining",
                result.synced,
                result.failed,
                result.remaining,
            )
        return result


def _to_item(row: SyncQueueEntry) -> SyncQueueItem:
    item_type = QueueItemType(row.type)
    return SyncQueueItem(
        id=row.id,
        type=item_type,
        payload=PAYLOAD_TYPES[item_type].model_validate(row.payload),
        timestamp=row.timestamp,
    )
