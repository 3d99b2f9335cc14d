"""End-to-end tests for the HTTP API on in-memory backends."""

import pytest
from fastapi.testclient import TestClient

from palworks.api.main import app
from palworks.api.services import build_services, get_services
from palworks.database.postgres import PostgresDB
from palworks.database.redis import RedisCache
from palworks.integrations.clients.mocks.payments import MockPaymentsClient

HEADERS = {"X-API-KEY": "test-key"}


@pytest.fixture
def services(pricing_config, catalogue):
    return build_services(
        config=pricing_config,
        db=PostgresDB(),
        cache=RedisCache(),
        catalogue=catalogue,
        payment_client=MockPaymentsClient(),
        simulator=MockPaymentsClient(success_rate=1.0),
        webhook_secret="whsec_test",
    )


@pytest.fixture
def client(monkeypatch, services):
    monkeypatch.setenv("API_KEYS", "test-key")
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_api_key_is_required(client):
    response = client.get("/api/v1/contract-types")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or missing API Key"


def test_health_is_public(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["database"]["redis"] is True
    assert body["catalogue"]["garage"] == "not_loaded"


def test_contract_types(client):
    body = client.get("/api/v1/contract-types", headers=HEADERS).json()
    prices = {ct["contract_type"]: ct["base_price"] for ct in body["contract_types"]}
    assert body["currency"] == "EUR"
    assert prices == {"untermietvertrag": 12.9, "garage": 7.9, "wg": 9.9}


def test_addons_for_alias(client):
    body = client.get("/api/v1/contract-addons/garagenvertrag", headers=HEADERS).json()
    assert body["contract_type"] == "garage"
    assert body["state"] == "ready"
    assert [a["key"] for a in body["addons"]] == ["explanation", "insurance_clause", "maintenance_guide"]


def test_unknown_contract_type_is_404(client):
    response = client.get("/api/v1/contract-addons/hausboot", headers=HEADERS)
    assert response.status_code == 404


def test_quote_with_legacy_flags(client):
    response = client.post(
        "/api/v1/pricing/quote",
        headers=HEADERS,
        json={"contract_type": "untermietvertrag", "selected_addons": ["explanation"], "include_protocol": True},
    )
    body = response.json()
    assert body["selected_addons"] == ["explanation", "handover_protocol"]
    assert body["flags"] == {"include_protocol": True, "include_explanations": True}
    assert body["quote"]["total"] == pytest.approx(30.70)
    assert body["quote"]["formatted"]["total"] == "30,70 €"


def test_toggle_removes_selected_addon(client):
    body = client.post(
        "/api/v1/pricing/toggle",
        headers=HEADERS,
        json={"contract_type": "wg", "selected_addons": ["house_rules", "explanation"], "addon_key": "house_rules"},
    ).json()
    assert body["selected_addons"] == ["explanation"]
    assert body["quote"]["total"] == pytest.approx(19.80)


def test_pricing_session_lifecycle(client):
    created = client.post(
        "/api/v1/sessions",
        headers=HEADERS,
        json={"contract_type": "untermietvertrag", "include_explanations": True},
    ).json()
    session_id = created["session_id"]
    assert created["loading"] is False
    assert created["selected_addons"] == ["explanation"]
    assert created["quote"]["total"] == pytest.approx(22.80)

    toggled = client.post(f"/api/v1/sessions/{session_id}/addons/handover_protocol/toggle", headers=HEADERS).json()
    assert toggled["flags"]["include_protocol"] is True
    assert toggled["quote"]["total"] == pytest.approx(30.70)

    switched = client.put(
        f"/api/v1/sessions/{session_id}/contract-type", headers=HEADERS, json={"contract_type": "garage"}
    ).json()
    assert switched["contract_type"] == "garage"
    assert switched["generation"] > created["generation"]
    assert [a["key"] for a in switched["catalog"]] == ["explanation", "insurance_clause", "maintenance_guide"]
    assert switched["quote"]["base_price"] == pytest.approx(7.90)

    assert client.delete(f"/api/v1/sessions/{session_id}", headers=HEADERS).json()["deleted"] is True
    assert client.get(f"/api/v1/sessions/{session_id}", headers=HEADERS).status_code == 404


def test_validation_errors_are_422(client):
    response = client.post("/api/v1/contracts/garage/validate", headers=HEADERS, json={"form_data": {}})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "validation_error"
    assert {"customer_email", "start_date", "rent"} <= set(detail["field_errors"])


def test_valid_form(client, garage_form):
    response = client.post("/api/v1/contracts/garage/validate", headers=HEADERS, json={"form_data": garage_form})
    assert response.json() == {"valid": True, "contract_type": "garage"}


def test_preview_is_locked(client, garage_form):
    body = client.post(
        "/api/v1/contracts/garage/preview",
        headers=HEADERS,
        json={"form_data": garage_form, "selected_addons": ["explanation"]},
    ).json()
    assert body["preview"]["locked"] is not None
    assert body["quote"]["total"] == pytest.approx(17.80)


def test_download_requires_payment(client, garage_form):
    contract = client.post(
        "/api/v1/contracts",
        headers=HEADERS,
        json={"contract_type": "garage", "form_data": garage_form, "selected_addons": ["explanation"]},
    ).json()
    assert contract["total_amount"] == pytest.approx(17.80)

    locked = client.get(f"/api/v1/contracts/{contract['id']}/download", headers=HEADERS)
    assert locked.status_code == 402

    paid = client.post(
        "/api/v1/payments/simulate", headers=HEADERS, json={"contract_id": contract["id"], "payment_method": "card"}
    ).json()
    assert paid["download_unlocked"] is True

    download = client.get(f"/api/v1/contracts/{contract['id']}/download", headers=HEADERS)
    assert download.status_code == 200
    assert download.json()["document"]["locked"] is None

    listed = client.get("/api/v1/contracts", headers=HEADERS, params={"email": "max@example.de"}).json()
    assert [c["id"] for c in listed["contracts"]] == [contract["id"]]


def test_paid_contract_cannot_be_paid_again(client, garage_form):
    contract = client.post(
        "/api/v1/contracts", headers=HEADERS, json={"contract_type": "garage", "form_data": garage_form}
    ).json()
    client.post("/api/v1/payments/simulate", headers=HEADERS, json={"contract_id": contract["id"]})

    again = client.post("/api/v1/payments/simulate", headers=HEADERS, json={"contract_id": contract["id"]})
    assert again.status_code == 400
    assert again.json()["detail"]["reason"] == "invalid_status"

    repriced = client.put(
        f"/api/v1/contracts/{contract['id']}/addons", headers=HEADERS, json={"selected_addons": ["explanation"]}
    )
    assert repriced.status_code == 409


def test_payment_intent_for_unknown_contract(client):
    response = client.post("/api/v1/payments/create-payment-intent", headers=HEADERS, json={"contract_id": "missing"})
    assert response.status_code == 404


def test_form_drafts(client):
    url = "/api/v1/forms/draft/sess-1/garagenvertrag"
    assert client.get(url, headers=HEADERS).status_code == 404

    saved = client.put(url, headers=HEADERS, json={"form_data": {"rent": "80"}}).json()
    assert saved["contract_type"] == "garage"
    assert client.get(url, headers=HEADERS).json()["form_data"] == {"rent": "80"}

    client.delete(url, headers=HEADERS)
    assert client.get(url, headers=HEADERS).status_code == 404


def test_webhook_without_signature_is_rejected(client):
    response = client.post("/api/v1/payments/webhook", content=b"{}")
    assert response.status_code == 400
