import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from sign_inventory.core.db.base import Base


class QueueItemType(str, enum.Enum):
    """Kind of write waiting in the sync queue"""

    inventory_records = "inventory_records"


class SyncQueueEntry(Base):
    """
    Write-ahead queue of saves made while offline.
    Rows are replayed in id order and deleted only after the remote
    service confirms the insert.
    """

    __tablename__ = "sync_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    type: Mapped[str] = mapped_column(String(50), nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    def __repr__(self) -> str:
        return f"<SyncQueueEntry(id={self.id}, type='{self.type}', timestamp={self.timestamp})>"
