from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from palworks.api.services import Services, get_services
from palworks.checkout.flow import is_download_unlocked
from palworks.documents.preview import render_full_contract, render_preview
from palworks.forms.validation import validate_contract_form
from palworks.pricing.engine import selection_from_legacy

api = APIRouter()
contracts_api = api


class FormPayload(BaseModel):
    form_data: Dict[str, Any] = Field(default_factory=dict)


class PreviewRequest(FormPayload):
    selected_addons: Optional[List[str]] = None


class CreateContractRequest(FormPayload):
    contract_type: str
    selected_addons: Optional[List[str]] = None
    customer_email: Optional[str] = None


class UpdateAddonsRequest(BaseModel):
    selected_addons: List[str] = Field(default_factory=list)


@api.post("/contracts/{contract_type}/validate", tags=["Contracts"])
async def validate_form(contract_type: str, body: FormPayload, services: Services = Depends(get_services)):
    """Run the server-side form checks; failures come back as 422 with field_errors."""
    ct = services.config.resolve_contract_type(contract_type)
    validate_contract_form(ct, body.form_data)
    return {"valid": True, "contract_type": ct}


@api.post("/contracts/{contract_type}/preview", tags=["Contracts"])
async def preview_contract(contract_type: str, body: PreviewRequest, services: Services = Depends(get_services)):
    ct = services.config.resolve_contract_type(contract_type)
    selected = body.selected_addons
    if selected is None:
        selected = list(body.form_data.get("selected_addons") or [])
    quote = await services.controller.quote(ct, selection_from_legacy(selected, body.form_data))
    document = render_preview(ct, body.form_data, quote)
    return {"preview": document.to_dict(), "text": document.to_text(), "quote": quote.to_dict()}


@api.post("/contracts", tags=["Contracts"])
async def create_contract(body: CreateContractRequest, services: Services = Depends(get_services)):
    return await services.controller.create_contract(
        body.contract_type,
        body.form_data,
        selected_addons=body.selected_addons,
        customer_email=body.customer_email,
    )


@api.get("/contracts", tags=["Contracts"])
async def list_contracts(email: str = Query(..., min_length=3), services: Services = Depends(get_services)):
    return {"contracts": services.controller.list_contracts(email)}


@api.get("/contracts/{contract_id}", tags=["Contracts"])
async def get_contract(contract_id: str, services: Services = Depends(get_services)):
    contract = services.controller.get_contract(contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@api.put("/contracts/{contract_id}/addons", tags=["Contracts"])
async def update_contract_addons(
    contract_id: str,
    body: UpdateAddonsRequest,
    services: Services = Depends(get_services),
):
    contract = await services.controller.update_addons(contract_id, body.selected_addons)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


@api.get("/contracts/{contract_id}/download", tags=["Contracts"])
async def download_contract(contract_id: str, services: Services = Depends(get_services)):
    contract = services.db.get_contract(contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    if not is_download_unlocked(contract):
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": "Der vollständige Vertrag ist erst nach erfolgreicher Zahlung verfügbar.",
                "status": contract.status,
                "payment_status": contract.payment_status,
            },
        )
    document = render_full_contract(contract.contract_type, contract.form_data)
    return {"contract_id": str(contract.id), "document": document.to_dict(), "text": document.to_text()}


# ---------------------------------------------------------------------------
# Form drafts
# ---------------------------------------------------------------------------

@api.put("/forms/draft/{session_id}/{contract_type}", tags=["Forms"])
async def save_form_draft(
    session_id: str,
    contract_type: str,
    body: FormPayload,
    services: Services = Depends(get_services),
):
    """Cache a partially filled form; nothing is validated here."""
    ct = services.config.resolve_contract_type(contract_type)
    services.cache.set_form_draft(session_id, ct, body.form_data)
    return {"status": "saved", "session_id": session_id, "contract_type": ct}


@api.get("/forms/draft/{session_id}/{contract_type}", tags=["Forms"])
async def get_form_draft(session_id: str, contract_type: str, services: Services = Depends(get_services)):
    ct = services.config.resolve_contract_type(contract_type)
    draft = services.cache.get_form_draft(session_id, ct)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return {"session_id": session_id, "contract_type": ct, "form_data": draft}


@api.delete("/forms/draft/{session_id}/{contract_type}", tags=["Forms"])
async def delete_form_draft(session_id: str, contract_type: str, services: Services = Depends(get_services)):
    ct = services.config.resolve_contract_type(contract_type)
    services.cache.delete_form_draft(session_id, ct)
    return {"status": "deleted", "session_id": session_id, "contract_type": ct}
