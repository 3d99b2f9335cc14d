"""
Supabase Addon Catalogue HTTP Client.

Reads the `contract_addons` table through the PostgREST API of the Supabase
project configured in SUPABASE_URL / SUPABASE_ANON_KEY.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

import httpx

from palworks.integrations.contracts.addons import normalize_addon_record
from palworks.integrations.contracts.interfaces import Addon, AddonCatalogueClient
from palworks.integrations.policy.response_wrappers import normalize_addon_rows

logger = logging.getLogger(__name__)


class SupabaseAddonCatalogueClient(AddonCatalogueClient):
    table = "contract_addons"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY", "")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch_addons(self, contract_type: str) -> List[Addon]:
        if not self.base_url:
            raise ValueError("SUPABASE_URL is not configured.")

        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"

        params = {
            "select": "*",
            "contract_type": f"eq.{contract_type}",
            "is_active": "eq.true",
            "order": "sort_order.asc",
        }

        url = f"{self.base_url}/rest/v1/{self.table}"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json() if response.content else []

        rows = normalize_addon_rows(data)
        addons = [normalize_addon_record(row) for row in rows]
        logger.info("[Catalog] Loaded %d addons for '%s' from Supabase", len(addons), contract_type)
        return [a for a in addons if a.is_active]
