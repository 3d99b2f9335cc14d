"""Tests for Stripe webhook verification and event handling."""

from decimal import Decimal

import pytest
import stripe

from palworks.checkout.flow import CheckoutFlow, is_download_unlocked
from palworks.checkout.webhooks import StripeWebhookHandler, WebhookVerificationError
from palworks.controllers.contract_controller import ContractController
from palworks.integrations.clients.mocks.payments import MockPaymentsClient


def _contract(db, status="draft", payment_intent_id="pi_42"):
    contract = db.create_contract(
        contract_type="wg",
        form_data={},
        selected_addons=[],
        addon_prices={},
        base_price=Decimal("9.90"),
        total_amount=Decimal("9.90"),
        customer_email="wg@example.de",
        status=status,
    )
    return db.update_contract(contract.id, {"payment_intent_id": payment_intent_id})


def _event(event_type, contract_id=None, last_error=None):
    obj = {"id": "pi_42", "object": "payment_intent", "amount": 990, "metadata": {}}
    if contract_id:
        obj["metadata"]["contract_id"] = contract_id
    if last_error:
        obj["last_payment_error"] = last_error
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def handler(db):
    return StripeWebhookHandler(CheckoutFlow(db, MockPaymentsClient()), secret="whsec_test")


def test_verify_returns_event(monkeypatch, handler):
    seen = {}

    def construct_event(payload, sig_header, secret):
        seen.update(payload=payload, sig_header=sig_header, secret=secret)
        return _event("payment_intent.succeeded", "c1")

    monkeypatch.setattr(stripe.Webhook, "construct_event", construct_event)

    event = handler.verify(b"{}", "t=1,v1=abc")

    assert event["type"] == "payment_intent.succeeded"
    assert seen == {"payload": b"{}", "sig_header": "t=1,v1=abc", "secret": "whsec_test"}


def test_bad_signature_is_rejected(monkeypatch, handler):
    def construct_event(payload, sig_header, secret):
        raise stripe.SignatureVerificationError("No signatures found", sig_header)

    monkeypatch.setattr(stripe.Webhook, "construct_event", construct_event)

    with pytest.raises(WebhookVerificationError):
        handler.verify(b"{}", "t=1,v1=bad")


def test_missing_signature_or_secret(db, handler, monkeypatch):
    with pytest.raises(WebhookVerificationError):
        handler.verify(b"{}", None)

    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    unconfigured = StripeWebhookHandler(CheckoutFlow(db, MockPaymentsClient()))
    with pytest.raises(WebhookVerificationError):
        unconfigured.verify(b"{}", "t=1,v1=abc")


def test_succeeded_event_marks_contract_paid(db, handler):
    contract = _contract(db)

    result = handler.handle_event(_event("payment_intent.succeeded", contract.id))

    assert result == {"received": True, "handled": True, "contract_id": contract.id, "status": "succeeded"}
    stored = db.get_contract(contract.id)
    assert stored.status == "paid"
    assert stored.payment_intent_id == "pi_42"


def test_failed_event_logs_german_error(db, handler):
    contract = _contract(db)
    db.log_payment_attempt(
        contract_id=contract.id,
        payment_intent_id="pi_42",
        amount=Decimal("9.90"),
        currency="eur",
        payment_method="card",
        status="pending",
    )

    handler.handle_event(
        _event("payment_intent.payment_failed", contract.id, {"code": "insufficient_funds", "message": "Insufficient funds"})
    )

    assert db.get_contract(contract.id).status == "payment_failed"
    log = db.get_payment_logs(contract.id)[0]
    assert log.status == "failed"
    assert log.provider_response["error"] == "Nicht ausreichende Deckung. Bitte prüfen Sie Ihr Konto."


def test_late_failure_does_not_undo_payment(db, handler):
    contract = _contract(db, status="paid")
    handler.handle_event(_event("payment_intent.payment_failed", contract.id))
    assert db.get_contract(contract.id).status == "paid"


def test_canceled_event(db, handler):
    contract = _contract(db)
    handler.handle_event(_event("payment_intent.canceled", contract.id))
    stored = db.get_contract(contract.id)
    assert stored.status == "canceled"
    assert stored.payment_status == "canceled"


def test_unhandled_event_type_is_acknowledged(handler):
    assert handler.handle_event({"id": "evt_2", "type": "charge.refunded", "data": {"object": {}}}) == {
        "received": True,
        "handled": False,
    }


def test_event_without_contract_id_is_ignored(handler, caplog):
    result = handler.handle_event(_event("payment_intent.succeeded"))
    assert result == {"received": True, "handled": False}
    assert "No contract_id in metadata" in caplog.text


def test_event_for_unknown_contract_is_ignored(handler):
    result = handler.handle_event(_event("payment_intent.succeeded", "missing"))
    assert result["handled"] is False


def _intent_event(event_type, intent_id, contract_id, cents):
    return {
        "id": f"evt_{intent_id}",
        "type": event_type,
        "data": {"object": {"id": intent_id, "amount": cents, "metadata": {"contract_id": contract_id}}},
    }


@pytest.mark.asyncio
async def test_old_intent_cannot_pay_repriced_contract(db, catalogue, pricing_config, garage_form):
    controller = ContractController(db, catalogue, pricing_config)
    checkout = CheckoutFlow(db, MockPaymentsClient())
    handler = StripeWebhookHandler(checkout, secret="whsec_test")

    created = await controller.create_contract("garage", garage_form, selected_addons=[])
    old_intent = (await checkout.create_payment_intent(created["id"]))["payment_intent"]["id"]
    repriced = await controller.update_addons(
        created["id"], ["explanation", "insurance_clause", "maintenance_guide"]
    )
    assert repriced["total_amount"] == pytest.approx(35.60)

    handler.handle_event(_intent_event("payment_intent.succeeded", old_intent, created["id"], 790))
    stored = db.get_contract(created["id"])
    assert stored.status == "draft"
    assert not is_download_unlocked(stored)

    new_intent = (await checkout.create_payment_intent(created["id"]))["payment_intent"]["id"]
    assert new_intent != old_intent
    handler.handle_event(_intent_event("payment_intent.succeeded", new_intent, created["id"], 3560))
    assert db.get_contract(created["id"]).status == "paid"


def test_underpaid_success_event_is_not_applied(db, handler):
    contract = _contract(db)
    event = _event("payment_intent.succeeded", contract.id)
    event["data"]["object"]["amount"] = 500

    handler.handle_event(event)

    assert db.get_contract(contract.id).status == "draft"


def test_event_for_superseded_intent_is_not_applied(db, handler):
    contract = _contract(db, payment_intent_id="pi_new")
    handler.handle_event(_event("payment_intent.payment_failed", contract.id))
    stored = db.get_contract(contract.id)
    assert stored.status == "draft"
    assert stored.payment_intent_id == "pi_new"
