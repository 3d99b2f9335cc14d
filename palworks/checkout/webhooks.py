"""
Stripe webhook handling.

The signature is verified with stripe.Webhook.construct_event before anything
is read from the payload. Only payment_intent.* events change contracts; all
other events are acknowledged and ignored.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import stripe

from palworks.integrations.contracts.payments import WEBHOOK_EVENT_STATUS, format_payment_error
from palworks.integrations.policy.response_wrappers import normalize_webhook_event

from .flow import CheckoutFlow, ContractNotFoundError

logger = logging.getLogger(__name__)


class WebhookVerificationError(Exception):
    pass


class StripeWebhookHandler:
    def __init__(self, checkout: CheckoutFlow, secret: Optional[str] = None) -> None:
        self.checkout = checkout
        self.secret = secret or os.getenv("STRIPE_WEBHOOK_SECRET", "")

    def verify(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not self.secret:
            raise WebhookVerificationError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.secret)
        except ValueError as exc:
            raise WebhookVerificationError(f"Invalid payload: {exc}") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(f"Invalid signature: {exc}") from exc
        return event.to_dict() if hasattr(event, "to_dict") else dict(event)

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        event_type = event.get("type")
        status = WEBHOOK_EVENT_STATUS.get(event_type)
        if status is None:
            logger.info("[StripeWebhook] Unhandled event type: %s", event_type)
            return {"received": True, "handled": False}

        parsed = normalize_webhook_event(event)
        if not parsed.contract_id:
            logger.warning(
                "[StripeWebhook] No contract_id in metadata of %s (%s); ignoring",
                parsed.payment_intent_id,
                event_type,
            )
            return {"received": True, "handled": False}

        provider_response: Dict[str, Any] = {
            "event_id": parsed.id,
            "event_type": event_type,
            "payment_intent_id": parsed.payment_intent_id,
            "amount": float(parsed.amount),
        }
        if parsed.failure_code or parsed.failure_message:
            provider_response["error"] = format_payment_error(parsed.failure_code, parsed.failure_message)

        try:
            self.checkout.apply_payment_status(
                parsed.contract_id,
                status,
                payment_intent_id=parsed.payment_intent_id,
                provider_response=provider_response,
                amount=parsed.amount,
                require_current_intent=True,
            )
        except ContractNotFoundError:
            logger.warning("[StripeWebhook] Contract %s from %s not found", parsed.contract_id, event_type)
            return {"received": True, "handled": False}

        logger.info("[StripeWebhook] %s applied to contract %s", event_type, parsed.contract_id)
        return {"received": True, "handled": True, "contract_id": parsed.contract_id, "status": status.value}
