"""
DraftsService - autosave of in-progress inventory checklists
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.orm import Session

from sign_inventory.core.db.engine import LocalStore
from sign_inventory.core.utils import draft_key, utc_now
from .models import ActiveInventory
from .schemas import DraftResponse, DraftSign

logger = logging.getLogger(__name__)


class DraftsService:
    """
    Drafts service for active inventory sessions.

    One draft per (site, area) key. Every save is a full replace
    (last write wins, no version check); the draft is only deleted once a
    save of its content has been confirmed.
    """

    def __init__(self, store: LocalStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def save_draft(
        self,
        site_id: str,
        area_id: Optional[str],
        signs: List[DraftSign],
        site_name: Optional[str] = None,
        area_name: Optional[str] = None,
    ) -> DraftResponse:
        """
        Replace the draft for (site_id, area_id).

        Called after every status change, not debounced. created_at is kept
        from the draft being replaced; last_modified is always bumped.

        Args:
            site_id: Site of the checklist
            area_id: Area of the checklist, None for the whole site
            signs: Every sign on the checklist with its current mark
            site_name: Display name kept for resuming offline
            area_name: Display name kept for resuming offline

        Returns:
            The stored draft
        """
        now = self.clock()
        key = draft_key(site_id, area_id)

        def _save(db: Session) -> DraftResponse:
            existing = db.get(ActiveInventory, key)
            draft = ActiveInventory(
                id=key,
                site_id=site_id,
                site_name=site_name,
                area_id=area_id,
                area_name=area_name,
                signs=[sign.model_dump(mode="json") for sign in signs],
                created_at=existing.created_at if existing else now,
                last_modified=now,
            )
            draft = db.merge(draft)
            db.flush()
            return DraftResponse.model_validate(draft)

        return await self.store.run(_save)

    async def get_draft(
        self, site_id: str, area_id: Optional[str] = None
    ) -> Optional[DraftResponse]:
        """
        Get the draft for (site_id, area_id), or None.
        A draft found here is resumed instead of fetching the catalog.
        """

        def _get(db: Session) -> Optional[DraftResponse]:
            draft = db.get(ActiveInventory, draft_key(site_id, area_id))
            return DraftResponse.model_validate(draft) if draft else None

        return await self.store.run(_get)

    async def delete_draft(self, site_id: str, area_id: Optional[str] = None) -> bool:
        """
        Delete the draft for (site_id, area_id).

        Returns:
            True if a draft was deleted
        """

        def _delete(db: Session) -> bool:
            result = db.execute(
                delete(ActiveInventory).where(ActiveInventory.id == draft_key(site_id, area_id))
            )
            return result.rowcount > 0

        deleted = await self.store.run(_delete)
        if deleted:
            logger.info("Draft cleared for %s", draft_key(site_id, area_id))
        return deleted

    async def list_drafts(self) -> List[DraftResponse]:
        """All resident drafts, most recently modified first."""

        def _list(db: Session) -> List[DraftResponse]:
            query = select(ActiveInventory).order_by(desc(ActiveInventory.last_modified))
            return [DraftResponse.model_validate(row) for row in db.execute(query).scalars().all()]

        return await self.store.run(_list)

    async def count(self) -> int:
        def _count(db: Session) -> int:
            return db.execute(select(func.count()).select_from(ActiveInventory)).scalar_one()

        return await self.store.run(_count)
