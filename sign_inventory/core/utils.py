"""Core utility functions for the application"""

from datetime import datetime, timezone
from typing import Optional

ALL_AREAS = "ALL"


def utc_now() -> datetime:
    """
    Current time as naive UTC.

    SQLite stores DateTime columns without timezone, so every timestamp in
    the local store is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC datetime."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)


def catalog_key(site_id: str, area_id: Optional[str] = None) -> str:
    """
    Composite key for a catalog snapshot.

    Args:
        site_id: Site the catalog belongs to
        area_id: Area within the site, or None for the whole site

    Returns:
        str: e.g. "site-1_area-2" or "site-1_ALL"
    """
    return f"{site_id}_{area_id or ALL_AREAS}"


def draft_key(site_id: str, area_id: Optional[str] = None) -> str:
    """
    Composite key for an active inventory draft ("site_area" or "site").

    Ambiguous if a site id contains "_": ("a_b", None) and ("a", "b") share
    the key "a_b". Remote ids are UUIDs, which never do.
    """
    return f"{site_id}_{area_id}" if area_id else site_id
