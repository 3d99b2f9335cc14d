"""Tests for the checkout flow with the demo payment processor."""

from decimal import Decimal

import pytest

from palworks.checkout.flow import CheckoutError, CheckoutFlow, ContractNotFoundError, is_download_unlocked
from palworks.integrations.clients.mocks.payments import MockPaymentsClient
from palworks.integrations.contracts.interfaces import PaymentRequest, PaymentStatus
from palworks.integrations.contracts.payments import (
    format_payment_error,
    to_minor_units,
    validate_payment_request,
)


def _contract(db, total="17.80", status="draft"):
    return db.create_contract(
        contract_type="garage",
        form_data={},
        selected_addons=["explanation"],
        addon_prices={"explanation": 9.9},
        base_price=Decimal("7.90"),
        total_amount=Decimal(total),
        customer_email="max@example.de",
        status=status,
    )


@pytest.fixture
def checkout(db, always_succeeds):
    return CheckoutFlow(db, MockPaymentsClient(success_rate=1.0), simulator=always_succeeds)


# ---------------------------------------------------------------------------
# Payment contract helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "amount,cents",
    [(Decimal("17.80"), 1780), (Decimal("0.005"), 1), (Decimal("12.9"), 1290), (Decimal("30.70"), 3070)],
)
def test_to_minor_units(amount, cents):
    assert to_minor_units(amount) == cents


def test_validate_payment_request_reports_every_problem():
    errors = validate_payment_request(
        PaymentRequest(reference="", amount=Decimal("0"), currency="", description="", customer_email="nope")
    )
    assert len(errors) == 5


def test_payment_error_messages_are_german():
    assert format_payment_error("card_declined", None).startswith("Ihre Karte wurde abgelehnt.")
    assert format_payment_error("something_else", "Raw processor text") == "Raw processor text"


# ---------------------------------------------------------------------------
# Demo processor
# ---------------------------------------------------------------------------

def test_success_rate_must_be_a_probability():
    with pytest.raises(ValueError):
        MockPaymentsClient(success_rate=1.5)


def test_success_rate_from_environment(monkeypatch):
    monkeypatch.setenv("PAYMENT_SIMULATION_SUCCESS_RATE", "0.25")
    assert MockPaymentsClient().success_rate == 0.25


@pytest.mark.asyncio
async def test_simulated_success_references(always_succeeds):
    request = PaymentRequest(reference="c1", amount=Decimal("7.90"), currency="eur", description="garage")
    always_succeeds._clock = lambda: 1700000000.5
    response = await always_succeeds.simulate_payment(request)

    assert response.status == PaymentStatus.SUCCEEDED
    assert response.provider_reference == "demo_1700000000500"
    assert response.metadata["transaction_id"] == "txn_1700000000500"


@pytest.mark.asyncio
async def test_simulated_failure(always_fails):
    request = PaymentRequest(reference="c1", amount=Decimal("7.90"), currency="eur", description="garage")
    response = await always_fails.simulate_payment(request)
    assert response.status == PaymentStatus.FAILED
    assert response.provider_reference.startswith("demo_failed_")
    assert response.message == "Payment processing failed - demo mode"


# ---------------------------------------------------------------------------
# Checkout flow
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_simulated_payment_unlocks_download(db, checkout):
    contract = _contract(db)

    result = await checkout.simulate_payment(contract.id, method="paypal")

    assert result["success"] is True
    assert result["status"] == "succeeded"
    assert result["amount"] == pytest.approx(17.80)
    assert result["download_unlocked"] is True
    stored = db.get_contract(contract.id)
    assert stored.status == "paid"
    assert stored.payment_status == "paid"
    assert is_download_unlocked(stored)
    assert db.get_payment_logs(contract.id)[0].payment_method == "paypal"


@pytest.mark.asyncio
async def test_failed_payment_can_be_retried(db, always_fails, always_succeeds):
    contract = _contract(db)
    failing = CheckoutFlow(db, MockPaymentsClient(), simulator=always_fails)

    result = await failing.simulate_payment(contract.id)
    assert result["success"] is False
    assert db.get_contract(contract.id).status == "payment_failed"
    assert not is_download_unlocked(db.get_contract(contract.id))

    retry = CheckoutFlow(db, MockPaymentsClient(), simulator=always_succeeds)
    assert (await retry.simulate_payment(contract.id))["download_unlocked"] is True


@pytest.mark.asyncio
async def test_paid_contract_cannot_be_paid_again(db, checkout):
    contract = _contract(db, status="paid")
    with pytest.raises(CheckoutError) as exc:
        await checkout.simulate_payment(contract.id)
    assert exc.value.reason == "invalid_status"


@pytest.mark.asyncio
async def test_zero_total_is_rejected(db, checkout):
    contract = _contract(db, total="0")
    with pytest.raises(CheckoutError) as exc:
        await checkout.create_payment_intent(contract.id)
    assert exc.value.reason == "invalid_amount"


@pytest.mark.asyncio
async def test_unknown_contract(checkout):
    with pytest.raises(ContractNotFoundError):
        await checkout.create_payment_intent("missing")


@pytest.mark.asyncio
async def test_simulation_disabled(db):
    flow = CheckoutFlow(db, MockPaymentsClient())
    with pytest.raises(CheckoutError) as exc:
        await flow.simulate_payment(_contract(db).id)
    assert exc.value.reason == "simulation_disabled"


@pytest.mark.asyncio
async def test_payment_intent_is_stored_and_reused(db, checkout):
    contract = _contract(db)

    first = await checkout.create_payment_intent(contract.id)
    second = await checkout.create_payment_intent(contract.id)

    assert first["reused"] is False
    assert first["payment_intent"]["client_secret"].endswith("_secret_demo")
    assert first["currency"] == "eur"
    assert second["reused"] is True
    assert second["payment_intent"]["id"] == first["payment_intent"]["id"]
    stored = db.get_contract(contract.id)
    assert stored.payment_intent_id == first["payment_intent"]["id"]
    assert stored.payment_status == "pending"
    assert len(db.get_payment_logs(contract.id)) == 1


@pytest.mark.asyncio
async def test_payment_intent_request_carries_contract_metadata(db, checkout):
    contract = _contract(db)
    result = await checkout.create_payment_intent(contract.id)
    intent = await checkout.payment_client.retrieve_payment(result["payment_intent"]["id"])
    assert intent.metadata == {
        "contract_id": contract.id,
        "contract_type": "garage",
        "customer_email": "max@example.de",
    }
    assert intent.amount == Decimal("17.80")


def test_paid_contract_is_never_downgraded(db, checkout):
    contract = _contract(db, status="paid")
    db.update_contract(contract.id, {"payment_status": "paid"})

    checkout.apply_payment_status(contract.id, PaymentStatus.FAILED)

    stored = db.get_contract(contract.id)
    assert stored.status == "paid"
    assert stored.payment_status == "paid"


def test_processing_keeps_contract_status(db, checkout):
    contract = _contract(db)
    checkout.apply_payment_status(contract.id, PaymentStatus.PROCESSING, payment_intent_id="pi_1")
    stored = db.get_contract(contract.id)
    assert stored.status == "draft"
    assert stored.payment_status == "processing"
    assert stored.payment_intent_id == "pi_1"


def test_event_from_superseded_intent_is_ignored(db, checkout, caplog):
    contract = _contract(db)
    db.update_contract(contract.id, {"payment_intent_id": "pi_current"})

    result = checkout.apply_payment_status(
        contract.id,
        PaymentStatus.SUCCEEDED,
        payment_intent_id="pi_old",
        amount=Decimal("17.80"),
        require_current_intent=True,
    )

    assert result.status == "draft"
    assert db.get_contract(contract.id).payment_status == "pending"
    assert "Ignoring 'succeeded' from payment intent pi_old" in caplog.text


def test_processor_event_without_stored_intent_is_ignored(db, checkout):
    contract = _contract(db)
    checkout.apply_payment_status(
        contract.id, PaymentStatus.SUCCEEDED, payment_intent_id="pi_any", require_current_intent=True
    )
    assert db.get_contract(contract.id).status == "draft"


def test_underpaid_success_does_not_unlock(db, checkout, caplog):
    contract = _contract(db, total="30.70")
    db.update_contract(contract.id, {"payment_intent_id": "pi_1"})

    checkout.apply_payment_status(
        contract.id,
        PaymentStatus.SUCCEEDED,
        payment_intent_id="pi_1",
        amount=Decimal("7.90"),
        require_current_intent=True,
    )

    stored = db.get_contract(contract.id)
    assert stored.status == "draft"
    assert not is_download_unlocked(stored)
    assert "not marking paid" in caplog.text


def test_full_payment_of_current_intent_marks_paid(db, checkout):
    contract = _contract(db)
    db.update_contract(contract.id, {"payment_intent_id": "pi_1"})

    checkout.apply_payment_status(
        contract.id,
        PaymentStatus.SUCCEEDED,
        payment_intent_id="pi_1",
        amount=Decimal("17.80"),
        require_current_intent=True,
    )

    assert db.get_contract(contract.id).status == "paid"
