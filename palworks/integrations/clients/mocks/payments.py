"""
Mock Payments Client.

Purpose:
- Simulated payment processor for demo mode and tests
- Does NOT make any network calls

Behavior:
- initiate_payment(...) returns a pending demo intent with a client secret
- simulate_payment(...) succeeds with the configured success rate (default 95%)
  and returns demo_<ms> / txn_<ms> references, otherwise fails

Swap:
StripePaymentsClient in clients/real_http/stripe_payments.py replaces this client
when STRIPE_SECRET_KEY is configured and INTEGRATIONS_MODE=real.
"""

from __future__ import annotations

import logging
import os
import random
import time
from decimal import Decimal
from typing import Callable, Dict, Optional
from uuid import uuid4

from palworks.integrations.contracts.interfaces import PaymentClient, PaymentRequest, PaymentResponse, PaymentStatus
from palworks.integrations.contracts.payments import validate_payment_request

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_RATE = 0.95


class MockPaymentsClient(PaymentClient):
    def __init__(
        self,
        success_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if success_rate is None:
            success_rate = float(os.getenv("PAYMENT_SIMULATION_SUCCESS_RATE", DEFAULT_SUCCESS_RATE))
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be between 0 and 1; got {success_rate}")
        self.success_rate = success_rate
        self._rng = rng or random.Random()
        self._clock = clock
        self._intents: Dict[str, PaymentResponse] = {}

    def _millis(self) -> int:
        return int(self._clock() * 1000)

    async def initiate_payment(self, request: PaymentRequest) -> PaymentResponse:
        errors = validate_payment_request(request)
        if errors:
            raise ValueError("; ".join(errors))

        intent_id = f"pi_demo_{uuid4().hex[:16]}"
        response = PaymentResponse(
            reference=request.reference,
            provider_reference=intent_id,
            status=PaymentStatus.PENDING,
            amount=Decimal(str(request.amount)),
            currency=request.currency.lower(),
            message="Demo payment intent created",
            client_secret=f"{intent_id}_secret_demo",
            metadata=dict(request.metadata),
        )
        self._intents[intent_id] = response
        return response

    async def retrieve_payment(self, provider_reference: str) -> Optional[PaymentResponse]:
        return self._intents.get(provider_reference)

    async def simulate_payment(self, request: PaymentRequest) -> PaymentResponse:
        errors = validate_payment_request(request)
        if errors:
            raise ValueError("; ".join(errors))

        now = self._millis()
        success = self._rng.random() < self.success_rate
        if success:
            status = PaymentStatus.SUCCEEDED
            provider_reference = f"demo_{now}"
            message = "Demo payment succeeded"
            metadata = {"transaction_id": f"txn_{now}", "method": request.method}
        else:
            status = PaymentStatus.FAILED
            provider_reference = f"demo_failed_{now}"
            message = "Payment processing failed - demo mode"
            metadata = {"method": request.method}

        logger.info("[Checkout] Simulated payment for %s: %s", request.reference, status.value)
        return PaymentResponse(
            reference=request.reference,
            provider_reference=provider_reference,
            status=status,
            amount=Decimal(str(request.amount)),
            currency=request.currency.lower(),
            message=message,
            metadata=metadata,
        )
