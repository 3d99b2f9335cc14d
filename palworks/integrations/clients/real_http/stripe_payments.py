"""
Stripe Payments Client.

Creates and retrieves PaymentIntents through the official stripe library.
Used when STRIPE_SECRET_KEY is configured.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import stripe

from palworks.integrations.contracts.interfaces import PaymentClient, PaymentRequest, PaymentResponse
from palworks.integrations.contracts.payments import (
    PaymentProcessorError,
    format_payment_error,
    to_minor_units,
    validate_payment_request,
)
from palworks.integrations.policy.response_wrappers import normalize_payment_intent

logger = logging.getLogger(__name__)


class StripePaymentsClient(PaymentClient):
    def __init__(self, api_key: Optional[str] = None) -> None:
        self.api_key = api_key or os.getenv("STRIPE_SECRET_KEY", "")

    def _require_key(self) -> None:
        if not self.api_key:
            raise ValueError("STRIPE_SECRET_KEY is not configured.")

    async def initiate_payment(self, request: PaymentRequest) -> PaymentResponse:
        self._require_key()
        errors = validate_payment_request(request)
        if errors:
            raise ValueError("; ".join(errors))

        params: Dict[str, Any] = {
            "amount": to_minor_units(request.amount),
            "currency": request.currency.lower(),
            "payment_method_types": [request.method or "card"],
            "metadata": {k: str(v) for k, v in request.metadata.items() if v is not None},
            "description": request.description,
        }
        if request.customer_email:
            params["receipt_email"] = request.customer_email

        try:
            intent = await stripe.PaymentIntent.create_async(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.error("[Checkout] Stripe rejected payment intent for %s: %s", request.reference, exc)
            raise PaymentProcessorError(
                format_payment_error(getattr(exc, "code", None), getattr(exc, "user_message", None)),
                code=getattr(exc, "code", None),
            ) from exc

        logger.info("[Checkout] Stripe payment intent %s created for %s", intent["id"], request.reference)
        return self._to_response(intent, request.reference)

    async def retrieve_payment(self, provider_reference: str) -> Optional[PaymentResponse]:
        self._require_key()
        try:
            intent = await stripe.PaymentIntent.retrieve_async(provider_reference, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("[Checkout] Could not retrieve payment intent %s: %s", provider_reference, exc)
            return None
        metadata = intent.get("metadata") or {}
        return self._to_response(intent, metadata.get("contract_id") or "")

    def _to_response(self, intent: Any, reference: str) -> PaymentResponse:
        raw = intent.to_dict() if hasattr(intent, "to_dict") else dict(intent)
        normalized = normalize_payment_intent(raw)
        return PaymentResponse(
            reference=reference,
            provider_reference=normalized.id,
            status=normalized.status,
            amount=normalized.amount,
            currency=normalized.currency,
            message=str(raw.get("status") or ""),
            client_secret=normalized.client_secret,
            metadata={"stripe_status": raw.get("status"), "gateway_raw": raw},
        )
