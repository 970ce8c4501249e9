"""
Cached reference data - catalog snapshots, sites and areas.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from sign_inventory.core.db.base import Base


class CatalogSnapshot(Base):
    """
    One cached sign catalog for a (site, area) pair.
    Replaced wholesale on every successful remote fetch, never patched.
    """

    __tablename__ = "catalog_snapshots"

    # site_id + "_" + (area_id or "ALL")
    key: Mapped[str] = mapped_column(String(255), primary_key=True)

    site_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    area_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    signs: Mapped[list] = mapped_column(JSON, nullable=False)

    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    def __repr__(self) -> str:
        return f"<CatalogSnapshot(key='{self.key}', signs={len(self.signs or [])}, cached_at={self.cached_at})>"


class CachedSite(Base):
    """Site reference record kept for offline site selection."""

    __tablename__ = "cached_sites"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    def __repr__(self) -> str:
        return f"<CachedSite(id='{self.id}', name='{self.name}')>"


class CachedArea(Base):
    """Area reference record, looked up by its parent site."""

    __tablename__ = "cached_areas"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    site_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    def __repr__(self) -> str:
        return f"<CachedArea(id='{self.id}', site_id='{self.site_id}', name='{self.name}')>"
