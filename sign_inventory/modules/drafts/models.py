"""
Active Inventory Draft Model - in-progress checklist that survives restarts
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from sign_inventory.core.db.base import Base


class ActiveInventory(Base):
    """
    Draft model for an unsaved inventory checklist.
    Stores a frozen copy of the signs with their status marks as JSON,
    so resuming never depends on the catalog cache.
    """

    __tablename__ = "active_inventory"

    # site_id + "_" + area_id, or site_id alone
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    site_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    site_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    area_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    area_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    signs: Mapped[list] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<ActiveInventory(id='{self.id}', signs={len(self.signs or [])}, last_modified={self.last_modified})>"
