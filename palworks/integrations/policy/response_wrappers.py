from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from palworks.integrations.contracts.interfaces import PaymentStatus
from palworks.integrations.contracts.payments import from_minor_units


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class PaymentIntentResponseModel(BaseModel):
    id: str
    client_secret: Optional[str] = None
    status: PaymentStatus
    amount: Decimal
    currency: str = "eur"
    raw: Dict[str, Any] = Field(default_factory=dict)


class WebhookEventModel(BaseModel):
    id: str
    type: str
    payment_intent_id: str
    contract_id: Optional[str] = None
    amount: Decimal = Decimal("0")
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


def normalize_addon_rows(raw: Any) -> List[Dict[str, Any]]:
    """PostgREST returns a bare list; some proxies wrap it in {"addons": [...]}."""
    if isinstance(raw, list):
        rows = raw
    elif isinstance(raw, dict) and isinstance(raw.get("addons"), list):
        rows = raw["addons"]
    else:
        raise IntegrationResponseError("Addon catalogue response is not a list.", payload={"raw": raw})

    bad = [r for r in rows if not isinstance(r, dict)]
    if bad:
        raise IntegrationResponseError("Addon catalogue contains non-object rows.", payload={"raw": raw})
    return rows


def normalize_payment_intent(raw: Dict[str, Any]) -> PaymentIntentResponseModel:
    intent_id = _first_non_empty(raw, "id", "payment_intent_id")
    status = _map_payment_status(_first_non_empty(raw, "status", default="requires_payment_method"))
    amount_minor = _first_non_empty(raw, "amount", default=0)
    try:
        amount = from_minor_units(amount_minor)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid payment intent amount: {amount_minor!r}", payload=raw) from exc

    return _build_model(
        PaymentIntentResponseModel,
        {
            "id": str(intent_id),
            "client_secret": raw.get("client_secret"),
            "status": status,
            "amount": amount,
            "currency": str(_first_non_empty(raw, "currency", default="eur")).lower(),
            "raw": raw,
        },
        raw,
    )


def normalize_webhook_event(raw: Dict[str, Any]) -> WebhookEventModel:
    event_id = _first_non_empty(raw, "id")
    event_type = _first_non_empty(raw, "type")
    obj = (raw.get("data") or {}).get("object") or {}
    if not isinstance(obj, dict):
        raise IntegrationResponseError("Webhook event has no data.object.", payload=raw)

    intent_id = _first_non_empty(obj, "id")
    metadata = obj.get("metadata") or {}
    last_error = obj.get("last_payment_error") or {}

    return _build_model(
        WebhookEventModel,
        {
            "id": str(event_id),
            "type": str(event_type),
            "payment_intent_id": str(intent_id),
            "contract_id": metadata.get("contract_id"),
            "amount": from_minor_units(obj.get("amount_received") or obj.get("amount") or 0),
            "failure_code": last_error.get("code"),
            "failure_message": last_error.get("message"),
            "raw": raw,
        },
        raw,
    )


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _map_payment_status(raw_status: Any) -> PaymentStatus:
    value = str(raw_status or "").strip().lower()
    mapping = {
        "requires_payment_method": PaymentStatus.PENDING,
        "requires_confirmation": PaymentStatus.PENDING,
        "requires_action": PaymentStatus.PENDING,
        "pending": PaymentStatus.PENDING,
        "processing": PaymentStatus.PROCESSING,
        "succeeded": PaymentStatus.SUCCEEDED,
        "failed": PaymentStatus.FAILED,
        "canceled": PaymentStatus.CANCELED,
        "cancelled": PaymentStatus.CANCELED,
    }
    if value not in mapping:
        raise IntegrationResponseError(f"Unsupported payment status '{value}'.")
    return mapping[value]


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
