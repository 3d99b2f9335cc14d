import pytest

from palworks.forms.validation import (
    FormValidationError,
    validate_contract_form,
    validate_garage_form,
    validate_untermietvertrag_form,
    validate_wg_form,
)


def _errors(fn, form):
    with pytest.raises(FormValidationError) as exc:
        fn(form)
    return exc.value.field_errors


def _sublet_form(**overrides):
    form = {
        "billing_name": "Erika Muster",
        "billing_address": "Hauptstraße 1",
        "billing_postal": "10115",
        "billing_city": "Berlin",
        "billing_email": "erika@example.de",
        "property_address": "Gartenweg 5",
        "property_postal": "80331",
        "property_city": "München",
        "rent_amount": "450,00",
        "contract_type": "unlimited",
    }
    form.update(overrides)
    return form


def _wg_form(**overrides):
    form = {
        "landlord_name": "Erika Muster",
        "landlord_address": "Hauptstraße 1",
        "property_address": "Gartenweg 5",
        "property_postal": "80331",
        "property_city": "München",
        "exclusive_room": "Zimmer 2",
        "contract_type": "unlimited",
        "start_date": "2025-04-01",
        "rent_amount": "390",
    }
    form.update(overrides)
    return form


# ---------------------------------------------------------------------------
# Garage
# ---------------------------------------------------------------------------

def test_garage_valid_form_passes(garage_form):
    assert validate_garage_form(garage_form) is garage_form


def test_garage_requires_contract_email(garage_form):
    garage_form.pop("customer_email")
    errors = _errors(validate_garage_form, garage_form)
    assert errors["customer_email"] == "Gültige E-Mail-Adresse für Vertragszustellung erforderlich"


def test_garage_accepts_billing_email_instead(garage_form):
    garage_form.pop("customer_email")
    garage_form["billing_email"] = "rechnung@example.de"
    validate_garage_form(garage_form)


def test_garage_address_not_needed_when_same_as_landlord(garage_form):
    for field in ("garage_address", "garage_postal", "garage_city"):
        garage_form.pop(field)
    garage_form["garage_same_address"] = True
    validate_garage_form(garage_form)


def test_garage_fixed_term_needs_end_date(garage_form):
    garage_form["garage_lease_type"] = "befristet"
    errors = _errors(validate_garage_form, garage_form)
    assert errors == {"end_date": "Bei befristetem Vertrag ist das Enddatum erforderlich"}


def test_garage_rejects_bad_postal_code_and_type(garage_form):
    garage_form["garage_postal"] = "1011"
    garage_form["garage_type"] = "carport"
    errors = _errors(validate_garage_form, garage_form)
    assert errors["garage_postal"] == "PLZ muss 5 Ziffern haben"
    assert errors["garage_type"] == "Ungültiger Wert"


# ---------------------------------------------------------------------------
# Untermietvertrag
# ---------------------------------------------------------------------------

def test_sublet_valid_form_passes():
    validate_untermietvertrag_form(_sublet_form())


def test_sublet_missing_fields_use_german_labels():
    errors = _errors(validate_untermietvertrag_form, _sublet_form(billing_name="", property_city=" "))
    assert errors["billing_name"] == "Name des Rechnungsempfängers ist erforderlich"
    assert errors["property_city"] == "Ort des Mietobjekts ist erforderlich"


@pytest.mark.parametrize("rent", ["0", "-5", "abc"])
def test_sublet_rent_must_be_positive(rent):
    errors = _errors(validate_untermietvertrag_form, _sublet_form(rent_amount=rent))
    assert errors["rent_amount"] == "Mietbetrag muss eine gültige Zahl größer 0 sein"


def test_sublet_invalid_email():
    errors = _errors(validate_untermietvertrag_form, _sublet_form(billing_email="kein-at"))
    assert "billing_email" in errors


def test_sublet_fixed_term_needs_end_date():
    errors = _errors(validate_untermietvertrag_form, _sublet_form(contract_type="fixed_term"))
    assert "end_date" in errors
    validate_untermietvertrag_form(_sublet_form(contract_type="fixed_term", end_date="2026-01-31"))


# ---------------------------------------------------------------------------
# WG
# ---------------------------------------------------------------------------

def test_wg_valid_form_passes():
    validate_wg_form(_wg_form())


def test_wg_reports_every_missing_field():
    errors = _errors(validate_wg_form, {})
    assert set(errors) >= {"landlord_name", "exclusive_room", "start_date", "rent_amount"}
    assert errors["landlord_name"] == "Dieses Feld ist erforderlich"


def test_wg_negative_rent():
    errors = _errors(validate_wg_form, _wg_form(rent_amount="-1"))
    assert errors["rent_amount"] == "Miete muss eine positive Zahl sein"


def test_dispatch_by_contract_type(garage_form):
    validate_contract_form("garage", garage_form)
    with pytest.raises(FormValidationError):
        validate_contract_form("wg", {})
