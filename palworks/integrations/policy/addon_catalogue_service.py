"""
Addon Catalogue Service

Single cached lookup of addon catalogues per contract type. Includes:
- Explicit LOADING / READY / FALLBACK / ERROR states
- Fallback to the static catalogue on failure or empty result
- One shared in-flight load per contract type; concurrent callers await it
- Generation guard that discards responses of superseded loads
- Divergence warnings between remote and static catalogues
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from palworks.integrations.contracts.addons import find_catalog_divergences
from palworks.integrations.contracts.interfaces import Addon, AddonCatalogueClient, CatalogueState

logger = logging.getLogger(__name__)


@dataclass
class CatalogueSnapshot:
    contract_type: str
    state: CatalogueState
    generation: int
    addons: List[Addon] = field(default_factory=list)
    source: Optional[str] = None        # "remote" | "static"
    error: Optional[str] = None
    divergences: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.state == CatalogueState.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_type": self.contract_type,
            "state": self.state.value,
            "generation": self.generation,
            "fallback": self.is_fallback,
            "source": self.source,
            "addons": [a.to_dict() for a in self.addons],
        }


class AddonCatalogueService:
    def __init__(
        self,
        primary: AddonCatalogueClient,
        fallback: Optional[AddonCatalogueClient] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self._snapshots: Dict[str, CatalogueSnapshot] = {}
        self._latest_generation: Dict[str, int] = {}
        self._in_flight: Dict[str, "asyncio.Future[CatalogueSnapshot]"] = {}

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self, contract_type: str) -> Optional[CatalogueSnapshot]:
        return self._snapshots.get(contract_type)

    def state(self, contract_type: str) -> Optional[CatalogueState]:
        snap = self._snapshots.get(contract_type)
        return snap.state if snap else None

    def current(self, contract_type: str) -> List[Addon]:
        """Addons usable for pricing right now; empty while a load is in flight."""
        snap = self._snapshots.get(contract_type)
        if snap is None or snap.state == CatalogueState.LOADING:
            return []
        return list(snap.addons)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def begin_load(self, contract_type: str) -> int:
        generation = self._latest_generation.get(contract_type, 0) + 1
        self._latest_generation[contract_type] = generation
        self._snapshots[contract_type] = CatalogueSnapshot(
            contract_type=contract_type,
            state=CatalogueState.LOADING,
            generation=generation,
        )
        return generation

    async def get(self, contract_type: str, refresh: bool = False) -> CatalogueSnapshot:
        """
        Resolved catalogue for `contract_type`. Never returns a LOADING snapshot:
        callers arriving while a load is in flight await that load.
        """
        snap = self._snapshots.get(contract_type)
        if snap is not None and snap.state != CatalogueState.LOADING and not refresh:
            return snap

        pending = self._in_flight.get(contract_type)
        if pending is None or refresh:
            pending = self._start_load(contract_type)
        return await asyncio.shield(pending)

    def _start_load(self, contract_type: str) -> "asyncio.Future[CatalogueSnapshot]":
        generation = self.begin_load(contract_type)
        task = asyncio.ensure_future(self._fetch(contract_type, generation))
        self._in_flight[contract_type] = task

        def _done(finished: "asyncio.Future[CatalogueSnapshot]") -> None:
            if self._in_flight.get(contract_type) is finished:
                del self._in_flight[contract_type]

        task.add_done_callback(_done)
        return task

    async def load(self, contract_type: str, generation: Optional[int] = None) -> CatalogueSnapshot:
        if generation is None:
            generation = self.begin_load(contract_type)
        return await self._fetch(contract_type, generation)

    async def _fetch(self, contract_type: str, generation: int) -> CatalogueSnapshot:
        error: Optional[str] = None
        try:
            addons = await self.primary.fetch_addons(contract_type)
        except Exception as exc:
            logger.warning("[Catalog] Fetch for '%s' failed, using static catalogue: %s", contract_type, exc)
            addons = []
            error = str(exc)

        if addons:
            snap = CatalogueSnapshot(
                contract_type=contract_type,
                state=CatalogueState.READY,
                generation=generation,
                addons=list(addons),
                source="remote" if self.fallback is not None else "static",
            )
            if self.fallback is not None:
                snap.divergences = await self._check_divergences(contract_type, snap.addons)
        else:
            snap = await self._fallback_snapshot(contract_type, generation, error)

        committed = self.commit(snap)
        if committed is snap and self._is_stale(snap):
            newer = self._in_flight.get(contract_type)
            if newer is not None and newer is not asyncio.current_task():
                return await asyncio.shield(newer)
        return committed

    def _is_stale(self, snap: CatalogueSnapshot) -> bool:
        return snap.generation < self._latest_generation.get(snap.contract_type, 0)

    def commit(self, snap: CatalogueSnapshot) -> CatalogueSnapshot:
        """
        Store a finished load unless a newer load for the same type has started.

        A stale load returns the newer resolved snapshot. While the newer load
        is still LOADING it returns its own result, unstored.
        """
        if self._is_stale(snap):
            logger.info(
                "[Catalog] Discarding stale catalogue for '%s' (generation %s, latest %s)",
                snap.contract_type,
                snap.generation,
                self._latest_generation[snap.contract_type],
            )
            current = self._snapshots.get(snap.contract_type)
            if current is not None and current.state != CatalogueState.LOADING:
                return current
            return snap

        self._latest_generation[snap.contract_type] = snap.generation
        self._snapshots[snap.contract_type] = snap
        return snap

    async def _fallback_snapshot(
        self, contract_type: str, generation: int, error: Optional[str]
    ) -> CatalogueSnapshot:
        if self.fallback is None:
            logger.warning("[Catalog] No addons available for '%s'", contract_type)
            return CatalogueSnapshot(
                contract_type=contract_type,
                state=CatalogueState.ERROR,
                generation=generation,
                error=error or "empty catalogue",
            )

        try:
            addons = await self.fallback.fetch_addons(contract_type)
        except Exception as exc:
            logger.error("[Catalog] Static catalogue failed for '%s': %s", contract_type, exc)
            addons = []
            error = str(exc)

        if not addons:
            return CatalogueSnapshot(
                contract_type=contract_type,
                state=CatalogueState.ERROR,
                generation=generation,
                error=error or "empty catalogue",
            )

        logger.info("[Catalog] Using static catalogue for '%s' (%d addons)", contract_type, len(addons))
        return CatalogueSnapshot(
            contract_type=contract_type,
            state=CatalogueState.FALLBACK,
            generation=generation,
            addons=list(addons),
            source="static",
            error=error,
        )

    async def _check_divergences(self, contract_type: str, remote: List[Addon]) -> List[Dict[str, Any]]:
        try:
            static = await self.fallback.fetch_addons(contract_type)
        except Exception as exc:
            logger.error("[Catalog] Static catalogue failed for '%s': %s", contract_type, exc)
            return []

        divergences = find_catalog_divergences(
            {f"static:{contract_type}": static, f"remote:{contract_type}": remote}
        )
        for item in divergences:
            logger.warning(
                "[Catalog] Addon '%s' differs between catalogues: names=%s prices=%s",
                item["key"],
                item["names"],
                item["prices"],
            )
        return divergences
