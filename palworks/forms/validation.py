"""Backend validation for contract form submissions.

The frontend submits the whole form as a dictionary (`form_data`). Each
contract type has one validator that mirrors the checks of its form, with the
same German messages.

On validation failure, raise `FormValidationError` so the API can return HTTP 422
with structured `field_errors`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Optional

REQUIRED = "Dieses Feld ist erforderlich"
END_DATE_REQUIRED = "Bei befristetem Vertrag ist das Enddatum erforderlich"
POSTAL_INVALID = "PLZ muss 5 Ziffern haben"
INVALID_VALUE = "Ungültiger Wert"


@dataclass
class FormValidationError(Exception):
    """Exception raised for form validation failures.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Bitte korrigieren Sie die markierten Felder"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def _strip(v: Any) -> str:
    return "" if v is None else str(v).strip()


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return _strip(v).lower() in ("true", "1", "yes", "ja", "on")


def add_error(errors: Dict[str, str], field: str, message: str) -> None:
    if field not in errors:
        errors[field] = message


def require_str(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, label: Optional[str] = None) -> str:
    value = _strip(payload.get(field))
    if not value:
        add_error(errors, field, f"{label} ist erforderlich" if label else REQUIRED)
    return value


def require_all(payload: Dict[str, Any], fields: Iterable[str], errors: Dict[str, str], labels: Optional[Dict[str, str]] = None) -> None:
    for field in fields:
        require_str(payload, field, errors, label=(labels or {}).get(field))


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(value: Any, errors: Dict[str, str], field: str = "customer_email", *, message: str = "Bitte geben Sie eine gültige E-Mail-Adresse ein") -> str:
    value = _strip(value)
    if value and not _EMAIL_RE.match(value):
        add_error(errors, field, message)
    return value


_POSTAL_RE = re.compile(r"^\d{5}$")


def validate_postal_code(value: Any, errors: Dict[str, str], field: str) -> str:
    """German PLZ. Only checked when present; use require_str for presence."""
    value = _strip(value)
    if value and not _POSTAL_RE.match(value):
        add_error(errors, field, POSTAL_INVALID)
    return value


def parse_positive_amount(value: Any, errors: Dict[str, str], field: str, *, message: str) -> Optional[Decimal]:
    raw = _strip(value).replace(",", ".")
    if not raw:
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        add_error(errors, field, message)
        return None
    if not amount.is_finite() or amount <= 0:
        add_error(errors, field, message)
        return None
    return amount


def validate_in(value: Any, allowed: Iterable[str], errors: Dict[str, str], field: str, *, required: bool = True) -> str:
    raw = _strip(value)
    if not raw:
        if required:
            add_error(errors, field, REQUIRED)
        return raw
    if raw not in set(allowed):
        add_error(errors, field, INVALID_VALUE)
    return raw


def raise_if_errors(errors: Dict[str, str], message: str = "Bitte korrigieren Sie die markierten Felder") -> None:
    if errors:
        raise FormValidationError(field_errors=errors, message=message)


# ---------------------------------------------------------------------------
# Contract type validators
# ---------------------------------------------------------------------------

def validate_garage_form(form: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    email = _strip(form.get("customer_email") or form.get("billing_email"))
    if not email or not _EMAIL_RE.match(email):
        add_error(errors, "customer_email", "Gültige E-Mail-Adresse für Vertragszustellung erforderlich")

    required = ["start_date", "rent"]
    if not _as_bool(form.get("garage_same_address")):
        required += ["garage_address", "garage_postal", "garage_city"]
    require_all(form, required, errors)

    if _strip(form.get("garage_lease_type")) == "befristet" and not _strip(form.get("end_date")):
        add_error(errors, "end_date", END_DATE_REQUIRED)

    validate_postal_code(form.get("garage_postal"), errors, "garage_postal")
    validate_in(form.get("garage_type"), ("garage", "stellplatz"), errors, "garage_type", required=False)

    raise_if_errors(errors)
    return form


BILLING_LABELS = {
    "billing_name": "Name des Rechnungsempfängers",
    "billing_address": "Rechnungsadresse",
    "billing_postal": "PLZ der Rechnungsadresse",
    "billing_city": "Ort der Rechnungsadresse",
    "billing_email": "E-Mail-Adresse für Rechnung und Vertragszustellung",
}

PROPERTY_LABELS = {
    "property_address": "Adresse des Mietobjekts",
    "property_postal": "PLZ des Mietobjekts",
    "property_city": "Ort des Mietobjekts",
    "rent_amount": "Mietbetrag",
}


def validate_untermietvertrag_form(form: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    require_all(form, BILLING_LABELS, errors, BILLING_LABELS)
    validate_email(form.get("billing_email"), errors, "billing_email")
    require_all(form, PROPERTY_LABELS, errors, PROPERTY_LABELS)

    validate_postal_code(form.get("property_postal"), errors, "property_postal")
    validate_postal_code(form.get("billing_postal"), errors, "billing_postal")
    parse_positive_amount(
        form.get("rent_amount"), errors, "rent_amount",
        message="Mietbetrag muss eine gültige Zahl größer 0 sein",
    )

    if _strip(form.get("contract_type")) == "fixed_term" and not _strip(form.get("end_date")):
        add_error(errors, "end_date", END_DATE_REQUIRED)

    raise_if_errors(errors)
    return form


WG_REQUIRED = [
    "landlord_name", "landlord_address",
    "property_address", "property_postal", "property_city",
    "exclusive_room", "contract_type", "start_date", "rent_amount",
]


def validate_wg_form(form: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    require_all(form, WG_REQUIRED, errors)

    if _strip(form.get("contract_type")) == "fixed_term" and not _strip(form.get("end_date")):
        add_error(errors, "end_date", END_DATE_REQUIRED)

    validate_postal_code(form.get("property_postal"), errors, "property_postal")
    parse_positive_amount(form.get("rent_amount"), errors, "rent_amount", message="Miete muss eine positive Zahl sein")

    raise_if_errors(errors)
    return form


VALIDATORS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "garage": validate_garage_form,
    "untermietvertrag": validate_untermietvertrag_form,
    "wg": validate_wg_form,
}


def validate_contract_form(contract_type: str, form: Dict[str, Any]) -> Dict[str, Any]:
    """`contract_type` must already be canonical (see PricingConfig.resolve_contract_type)."""
    return VALIDATORS[contract_type](form or {})
