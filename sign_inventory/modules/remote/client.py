"""
Remote Data Service - Supabase PostgREST client.

The remote system of record for sites, areas, the sign catalog and the
inventory log. Transport failures are raised as NetworkError, error
responses as ServiceError; callers decide whether to fall back to the
local store.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
import pydantic

from sign_inventory.core.exceptions import NetworkError, ServiceError, ValidationError
from sign_inventory.core.utils import utc_now
from sign_inventory.modules.catalog.schemas import Area, SignCatalogEntry, Site
from sign_inventory.modules.sync_queue.schemas import (
    InventoryLogRecord,
    PendingInventoryRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=pydantic.BaseModel)

CATALOG_SORT_KEYS = ("sign_number", "sign_type_code", "description")


class RemoteDataService:
    """Client for the hosted Supabase REST API"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client

        Args:
            base_url: Supabase project URL (https://<project>.supabase.co)
            api_key: Project anon key
            access_token: Signed-in user's JWT; the anon key is used when empty
            timeout: Request timeout in seconds
            transport: Optional transport override (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._user_id: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get("message") if isinstance(body, dict) else None) or response.text
            logger.error("Supabase %s %s -> %s: %s", method, path, response.status_code, message)
            raise ServiceError(message, upstream_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            # Captive portals and proxies answer 200 with an HTML page
            logger.error("Supabase %s %s returned a non-JSON body", method, path)
            raise ServiceError(
                f"Unexpected non-JSON response from {path}",
                upstream_status=response.status_code,
            ) from exc

    async def ping(self) -> bool:
        """True if the service answered at all."""
        try:
            await self._request("GET", "/auth/v1/health")
        except NetworkError:
            return False
        except ServiceError:
            return True
        return True

    async def _current_user_id(self) -> Optional[str]:
        """Id of the signed-in user, or None when running on the anon key."""
        if not self.access_token:
            return None
        if self._user_id is None:
            try:
                user = await self._request("GET", "/auth/v1/user")
            except ServiceError as exc:
                logger.warning("Could not resolve current user: %s", exc.detail)
                return None
            self._user_id = user.get("id") if isinstance(user, dict) else None
        return self._user_id

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    async def fetch_sites(self) -> List[Site]:
        rows = await self._request(
            "GET", "/rest/v1/sites", params={"select": "*", "order": "name"}
        )
        return _parse_rows(Site, rows, "sites")

    async def fetch_areas(self, site_id: str) -> List[Area]:
        rows = await self._request(
            "GET",
            "/rest/v1/project_areas",
            params={"select": "*", "site_id": f"eq.{site_id}", "order": "area_name"},
        )
        return _parse_rows(Area, rows, "project_areas")

    async def fetch_catalog(
        self,
        site_id: str,
        area_filter: Optional[str] = None,
        sort_by: str = "sign_number",
    ) -> List[SignCatalogEntry]:
        """
        Fetch the sign catalog for a site, joined with sign descriptions.

        Args:
            site_id: Site to fetch
            area_filter: Area name matched against the imported level column;
                None or "ALL" fetches the whole site
            sort_by: sign_number (server order), sign_type_code or description

        Returns:
            Catalog entries with description and sign_type_code filled in
        """
        if sort_by not in CATALOG_SORT_KEYS:
            raise ValidationError(f"Unsupported catalog sort key: {sort_by}")

        params = {"select": "*", "site_id": f"eq.{site_id}", "order": "sign_number"}
        if area_filter and area_filter != "ALL":
            params["original_csv_level_no"] = f"ilike.%{area_filter}%"

        rows = _expect_rows(
            await self._request("GET", "/rest/v1/project_sign_catalog", params=params),
            "project_sign_catalog",
        )

        # The descriptions table is small; fetch it whole and join locally
        try:
            descriptions = _expect_rows(
                await self._request("GET", "/rest/v1/sign_descriptions", params={"select": "*"}),
                "sign_descriptions",
            )
        except (NetworkError, ServiceError) as exc:
            logger.error("Error fetching sign_descriptions: %s", exc.detail)
            descriptions = []
        by_id = {row.get("id"): row for row in descriptions}

        joined = []
        for row in rows:
            description = by_id.get(row.get("sign_description_id")) or {}
            if row.get("sign_description_id") and not description:
                logger.debug(
                    "Missing description for sign %s (%s)",
                    row.get("sign_number"),
                    row.get("sign_description_id"),
                )
            joined.append(
                {
                    **row,
                    "description": description.get("description") or "",
                    "sign_type_code": description.get("sign_type_code") or "",
                }
            )
        entries = _parse_rows(SignCatalogEntry, joined, "project_sign_catalog")

        if sort_by != "sign_number":
            entries.sort(key=lambda entry: getattr(entry, sort_by) or "")

        logger.info(
            "Fetched %d signs for site %s (%d with descriptions)",
            len(entries),
            site_id,
            sum(1 for entry in entries if entry.description),
        )
        return entries

    # ------------------------------------------------------------------
    # Inventory writes
    # ------------------------------------------------------------------

    async def create_session(self, site_id: str, label: Optional[str] = None) -> str:
        """
        Create an inventory session and return its id.
        Called once per online save, before the records are inserted.
        """
        rows = await self._request(
            "POST",
            "/rest/v1/inventory_sessions",
            json={
                "site_id": site_id,
                "session_name": label or f"Session {utc_now().isoformat()}",
                "user_id": await self._current_user_id(),
            },
            headers={"Prefer": "return=representation"},
        )
        rows = _expect_rows(rows, "inventory_sessions")
        if not rows or rows[0].get("id") is None:
            raise ServiceError("Session insert returned no id")
        return str(rows[0]["id"])

    async def insert_inventory_records(
        self, records: List[PendingInventoryRecord]
    ) -> List[InventoryLogRecord]:
        """
        Insert a batch of inventory log records in one request.
        PostgREST commits the whole batch or nothing.
        """
        user_id = await self._current_user_id()
        body = [
            {**record.model_dump(mode="json"), "user_id": user_id} for record in records
        ]
        rows = await self._request(
            "POST",
            "/rest/v1/inventory_log",
            json=body,
            headers={"Prefer": "return=representation"},
        )
        return _parse_rows(InventoryLogRecord, rows, "inventory_log")


def _expect_rows(payload: Any, table: str) -> List[dict]:
    """PostgREST answers with a JSON array of objects; anything else is a service error."""
    if payload is None:
        return []
    if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
        raise ServiceError(f"Unexpected response shape from {table}")
    return payload


def _parse_rows(model: Type[T], payload: Any, table: str) -> List[T]:
    rows = _expect_rows(payload, table)
    try:
        return [model.model_validate(row) for row in rows]
    except pydantic.ValidationError as exc:
        logger.error("Unexpected %s row shape: %s", table, exc)
        raise ServiceError(f"Unexpected row shape from {table}") from exc
