"""
Transient user notifications (save results, offline queueing, connectivity).

Kept in memory only; the UI pops them and shows each once.
"""

import enum
import logging
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List

from pydantic import BaseModel

from sign_inventory.core.utils import utc_now

logger = logging.getLogger(__name__)


class NotificationLevel(str, enum.Enum):
    success = "success"
    info = "info"
    warning = "warning"
    error = "error"


class Notification(BaseModel):
    level: NotificationLevel
    message: str
    created_at: datetime


class NotificationCenter:
    def __init__(self, max_size: int = 50, clock: Callable[[], datetime] = utc_now):
        self._pending: Deque[Notification] = deque(maxlen=max_size)
        self.clock = clock

    def push(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message, created_at=self.clock())
        self._pending.append(notification)
        logger.debug("Notification [%s] %s", level.value, message)
        return notification

    def pop_all(self) -> List[Notification]:
        """Return and forget every pending notification, oldest first."""
        notifications = list(self._pending)
        self._pending.clear()
        return notifications

    def __len__(self) -> int:
        return len(self._pending)
