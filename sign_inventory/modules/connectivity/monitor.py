"""
Connectivity monitor - the single online/offline signal.

Platform connectivity events arrive through set_online(). On the
offline -> online edge the sync queue is drained in the background. A
periodic background-sync task also drains (and, with a reachability check, detects
connectivity itself) while the UI is not in the foreground.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from sign_inventory.modules.notifications.service import (
    NotificationCenter,
    NotificationLevel,
)
from sign_inventory.modules.sync_queue.schemas import DrainResult
from sign_inventory.modules.sync_queue.service import SyncQueueService

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    def __init__(
        self,
        sync_queue: SyncQueueService,
        notifications: NotificationCenter,
        reachability_check: Optional[Callable[[], Awaitable[bool]]] = None,
        background_interval: float = 60.0,
        initially_online: bool = True,
    ):
        """
        Args:
            sync_queue: Queue drained when connectivity returns
            notifications: Where transition messages are pushed
            reachability_check: Optional check run on each background tick
            background_interval: Seconds between background syncs; 0 disables
            initially_online: Starting value of the signal
        """
        self.sync_queue = sync_queue
        self.notifications = notifications
        self.reachability_check = reachability_check
        self.background_interval = background_interval
        self._online = initially_online
        self._tasks: Set[asyncio.Task] = set()
        self._background_task: Optional[asyncio.Task] = None

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def background_sync_registered(self) -> bool:
        return self._background_task is not None and not self._background_task.done()

    def set_online(self, online: bool) -> bool:
        """
        Record a connectivity change.

        Only a real transition acts: going online notifies once and starts a
        drain without waiting for it; going offline notifies once and
        touches nothing else.

        Returns:
            True if the signal changed
        """
        if online == self._online:
            return False

        self._online = online
        if online:
            logger.info("🌐 Connection restored - syncing queued records")
            self.notifications.push(NotificationLevel.success, "Back online. Syncing queued records.")
            self._spawn_drain("reconnect")
        else:
            logger.info("📴 Connection lost - working offline")
            self.notifications.push(
                NotificationLevel.warning,
                "You are offline. Inventory will be saved locally and synced later.",
            )
        return True

    def request_sync(self, source: str = "background") -> asyncio.Task:
        """Drain on behalf of a background context (service-worker message)."""
        logger.info("Sync requested by %s", source)
        return self._spawn_drain(source)

    def _spawn_drain(self, source: str) -> asyncio.Task:
        task = asyncio.create_task(self._drain_logged(source))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _drain_logged(self, source: str) -> Optional[DrainResult]:
        try:
            return await self.sync_queue.drain()
        except Exception:
            # Fire-and-forget drains log their errors
            logger.exception("Sync drain (%s) failed", source)
            return None

    async def wait_idle(self) -> None:
        """Wait for every drain started by this monitor to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def register_background_sync(self) -> bool:
        """
        Start the periodic background sync.

        Returns:
            False when background sync is unsupported (interval 0) or
            already registered
        """
        if self.background_interval <= 0:
            logger.info("Background sync not supported (interval disabled)")
            return False
        if self.background_sync_registered:
            return False

        self._background_task = asyncio.create_task(self._background_loop())
        logger.info("Background sync registered every %ss", self.background_interval)
        return True

    async def _background_loop(self) -> None:
        while True:
            await asyncio.sleep(self.background_interval)
            await self.background_tick()

    async def background_tick(self) -> None:
        """One background-sync pass: check connectivity, then drain if online."""
        if self.reachability_check is not None:
            try:
                reachable = await self.reachability_check()
            except Exception:
                logger.exception("Connectivity check failed")
                reachable = False
            if reachable != self._online:
                # set_online starts its own drain on the way up
                self.set_online(reachable)
                return

        if self._online:
            await self._drain_logged("background-sync")

    async def stop(self) -> None:
        if self._background_task is not None:
            self._background_task.cancel()
            try:
                await self._background_task
            except asyncio.CancelledError:
                pass
            self._background_task = None
        await self.wait_idle()
