from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from palworks.api.services import Services, get_services
from palworks.pricing.engine import compute_total, dedupe_keys, legacy_flags, selection_from_legacy, toggle_addon
from palworks.pricing.session import PricingSession, refresh_catalog

api = APIRouter()
pricing_api = api


class QuoteRequest(BaseModel):
    contract_type: str
    selected_addons: List[str] = Field(default_factory=list)
    # Legacy boolean flags sent by older form clients
    include_protocol: Optional[bool] = None
    include_explanations: Optional[bool] = None


class ToggleRequest(QuoteRequest):
    addon_key: str = Field(..., min_length=1)


class CreateSessionRequest(BaseModel):
    contract_type: str
    selected_addons: List[str] = Field(default_factory=list)
    include_protocol: Optional[bool] = None
    include_explanations: Optional[bool] = None


class SwitchContractTypeRequest(BaseModel):
    contract_type: str


def _legacy_payload(body: BaseModel) -> Dict[str, Any]:
    return body.model_dump(include={"include_protocol", "include_explanations"}, exclude_none=True)


async def _quote_response(services: Services, contract_type: str, selected: List[str]) -> Dict[str, Any]:
    ct = services.config.resolve_contract_type(contract_type)
    snapshot = await services.catalogue.get(ct)
    quote = compute_total(services.config.base_price(ct), snapshot.addons, selected, currency=services.config.currency)
    return {
        "contract_type": ct,
        "selected_addons": dedupe_keys(selected),
        "flags": legacy_flags(quote.addon_keys),
        "catalog_state": snapshot.state.value,
        "fallback": snapshot.is_fallback,
        "quote": quote.to_dict(),
    }


def _session_view(session: PricingSession) -> Dict[str, Any]:
    return {
        "session_id": session.session_id,
        "contract_type": session.contract_type,
        "generation": session.generation,
        "catalog_state": session.catalog_state.value,
        "loading": session.is_loading,
        "catalog": [a.to_dict() for a in session.catalog],
        "selected_addons": list(session.selected_addons),
        "flags": session.flags,
        "quote": session.quote().to_dict(),
    }


def _require_session(services: Services, session_id: str) -> PricingSession:
    session = services.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Pricing session not found")
    return session


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

@api.get("/contract-types", tags=["Pricing"])
async def list_contract_types(services: Services = Depends(get_services)):
    cfg = services.config
    return {
        "currency": cfg.currency,
        "contract_types": [
            {
                "contract_type": name,
                "display_name": ct.display_name,
                "base_price": float(ct.base_price),
                "aliases": ct.aliases,
            }
            for name, ct in cfg.contract_types.items()
        ],
    }


@api.get("/contract-addons/{contract_type}", tags=["Pricing"])
async def get_contract_addons(contract_type: str, refresh: bool = False, services: Services = Depends(get_services)):
    ct = services.config.resolve_contract_type(contract_type)
    snapshot = await services.catalogue.get(ct, refresh=refresh)
    return snapshot.to_dict()


# ---------------------------------------------------------------------------
# Stateless pricing
# ---------------------------------------------------------------------------

@api.post("/pricing/quote", tags=["Pricing"])
async def quote(body: QuoteRequest, services: Services = Depends(get_services)):
    selected = selection_from_legacy(body.selected_addons, _legacy_payload(body))
    return await _quote_response(services, body.contract_type, selected)


@api.post("/pricing/toggle", tags=["Pricing"])
async def toggle(body: ToggleRequest, services: Services = Depends(get_services)):
    selected = selection_from_legacy(body.selected_addons, _legacy_payload(body))
    return await _quote_response(services, body.contract_type, toggle_addon(selected, body.addon_key))


# ---------------------------------------------------------------------------
# Pricing sessions
# ---------------------------------------------------------------------------

@api.post("/sessions", tags=["Sessions"])
async def create_session(body: CreateSessionRequest, services: Services = Depends(get_services)):
    ct = services.config.resolve_contract_type(body.contract_type)
    session = services.sessions.create(ct, services.config.base_price(ct), currency=services.config.currency)
    if body.selected_addons or _legacy_payload(body):
        session.apply_form_payload({"selected_addons": body.selected_addons, **_legacy_payload(body)})
        services.sessions.save(session)

    session = await refresh_catalog(services.sessions, services.catalogue, session.session_id, session.generation)
    return _session_view(session)


@api.get("/sessions/{session_id}", tags=["Sessions"])
async def get_session(session_id: str, services: Services = Depends(get_services)):
    return _session_view(_require_session(services, session_id))


@api.put("/sessions/{session_id}/contract-type", tags=["Sessions"])
async def switch_contract_type(
    session_id: str,
    body: SwitchContractTypeRequest,
    services: Services = Depends(get_services),
):
    session = _require_session(services, session_id)
    ct = services.config.resolve_contract_type(body.contract_type)
    generation = session.switch_contract_type(ct, services.config.base_price(ct))
    services.sessions.save(session)

    session = await refresh_catalog(services.sessions, services.catalogue, session_id, generation)
    if session is None:
        raise HTTPException(status_code=404, detail="Pricing session not found")
    return _session_view(session)


@api.post("/sessions/{session_id}/addons/{addon_key}/toggle", tags=["Sessions"])
async def toggle_session_addon(session_id: str, addon_key: str, services: Services = Depends(get_services)):
    session = _require_session(services, session_id)
    session.toggle(addon_key)
    services.sessions.save(session)
    return _session_view(session)


@api.delete("/sessions/{session_id}", tags=["Sessions"])
async def delete_session(session_id: str, services: Services = Depends(get_services)):
    _require_session(services, session_id)
    services.sessions.delete(session_id)
    return {"deleted": True, "session_id": session_id}


