"""
Server-side pricing session for one contract form.

The session owns the selection and a snapshot of the addon catalogue. The
engine stays stateless. Catalogue responses are applied only when they belong
to the session's current generation, so a late response for a contract type
the user already left never overwrites the catalogue of the new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from palworks.integrations.contracts.addons import normalize_addon_record
from palworks.integrations.contracts.interfaces import Addon, CatalogueState

from .engine import compute_total, dedupe_keys, legacy_flags, selection_from_legacy, set_addon, toggle_addon
from .models import PriceQuote

logger = logging.getLogger(__name__)


@dataclass
class PricingSession:
    contract_type: str
    base_price: Decimal
    session_id: str = field(default_factory=lambda: str(uuid4()))
    selected_addons: List[str] = field(default_factory=list)
    catalog: List[Addon] = field(default_factory=list)
    catalog_state: CatalogueState = CatalogueState.LOADING
    generation: int = 1
    catalog_generation: int = 0
    currency: str = "EUR"
    created_at: datetime = field(default_factory=datetime.utcnow)

    # --- Contract type ----------------------------------------------------------

    def switch_contract_type(self, contract_type: str, base_price: Decimal) -> int:
        """Start a new selection for another contract type. Returns the new generation."""
        self.contract_type = contract_type
        self.base_price = Decimal(str(base_price))
        self.selected_addons = []
        self.catalog = []
        self.catalog_state = CatalogueState.LOADING
        self.generation += 1
        logger.info("[Pricing] Session %s switched to '%s' (generation %s)", self.session_id, contract_type, self.generation)
        return self.generation

    # --- Catalogue --------------------------------------------------------------

    def apply_catalog(
        self,
        generation: int,
        catalog: Iterable[Addon],
        state: CatalogueState = CatalogueState.READY,
    ) -> bool:
        if generation != self.generation:
            logger.info(
                "[Pricing] Session %s ignored catalogue of generation %s (current %s)",
                self.session_id,
                generation,
                self.generation,
            )
            return False
        self.catalog = list(catalog)
        self.catalog_state = state
        self.catalog_generation = generation
        return True

    @property
    def is_loading(self) -> bool:
        return self.catalog_state == CatalogueState.LOADING

    # --- Selection --------------------------------------------------------------

    def toggle(self, key: str) -> List[str]:
        self.selected_addons = toggle_addon(self.selected_addons, key)
        return self.selected_addons

    def set_addon(self, key: str, enabled: bool) -> List[str]:
        self.selected_addons = set_addon(self.selected_addons, key, enabled)
        return self.selected_addons

    def apply_form_payload(self, payload: Mapping[str, Any]) -> List[str]:
        """Take `selected_addons` and legacy flags from an older form payload."""
        keys = payload.get("selected_addons")
        base = dedupe_keys(keys) if isinstance(keys, list) else self.selected_addons
        self.selected_addons = selection_from_legacy(base, payload)
        return self.selected_addons

    @property
    def flags(self) -> Dict[str, bool]:
        return legacy_flags(self.selected_addons)

    def quote(self) -> PriceQuote:
        return compute_total(self.base_price, self.catalog, self.selected_addons, currency=self.currency)

    # --- Serialization ----------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "contract_type": self.contract_type,
            "base_price": str(self.base_price),
            "selected_addons": list(self.selected_addons),
            "catalog": [a.to_dict() for a in self.catalog],
            "catalog_state": self.catalog_state.value,
            "generation": self.generation,
            "catalog_generation": self.catalog_generation,
            "currency": self.currency,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PricingSession":
        return cls(
            session_id=data["session_id"],
            contract_type=data["contract_type"],
            base_price=Decimal(str(data["base_price"])),
            selected_addons=list(data.get("selected_addons") or []),
            catalog=[normalize_addon_record(row) for row in data.get("catalog") or []],
            catalog_state=CatalogueState(data.get("catalog_state", CatalogueState.LOADING.value)),
            generation=int(data.get("generation", 1)),
            catalog_generation=int(data.get("catalog_generation", 0)),
            currency=data.get("currency", "EUR"),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.utcnow(),
        )


class PricingSessionStore:
    """Persists sessions as JSON drafts in the session cache (in-memory or Redis)."""

    def __init__(self, cache) -> None:
        self.cache = cache

    def create(self, contract_type: str, base_price: Decimal, currency: str = "EUR") -> PricingSession:
        session = PricingSession(contract_type=contract_type, base_price=Decimal(str(base_price)), currency=currency)
        self.save(session)
        return session

    def get(self, session_id: str) -> Optional[PricingSession]:
        data = self.cache.get_session(session_id)
        if not data:
            return None
        return PricingSession.from_dict(data)

    def save(self, session: PricingSession) -> None:
        self.cache.set_session(session.session_id, session.to_dict())

    def delete(self, session_id: str) -> None:
        self.cache.delete_session(session_id)


async def refresh_catalog(store: PricingSessionStore, catalogue_service, session_id: str, generation: int) -> Optional[PricingSession]:
    """
    Load the catalogue for the session's contract type and apply it.

    The session is re-read after the fetch, so a switch made by another request
    while the fetch was in flight wins over this response.
    """
    session = store.get(session_id)
    if session is None:
        return None

    snapshot = await catalogue_service.get(session.contract_type)

    session = store.get(session_id)
    if session is None:
        return None
    if session.contract_type != snapshot.contract_type:
        logger.info("[Pricing] Session %s changed contract type during fetch; dropping response", session_id)
        return session
    if session.apply_catalog(generation, snapshot.addons, state=snapshot.state):
        store.save(session)
    return session
