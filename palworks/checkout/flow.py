"""
Checkout flow - take payment for a priced contract and unlock the download
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from palworks.integrations.contracts.interfaces import (
    ContractStatus,
    PaymentClient,
    PaymentRequest,
    PaymentResponse,
    PaymentStatus,
)
from palworks.integrations.contracts.payments import CONTRACT_STATUS_FOR_PAYMENT

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (ContractStatus.DRAFT.value, ContractStatus.PAYMENT_FAILED.value)


class ContractNotFoundError(LookupError):
    def __init__(self, contract_id: str) -> None:
        super().__init__(f"Contract not found: {contract_id}")
        self.contract_id = contract_id


class CheckoutError(Exception):
    """The contract cannot be paid in its current state."""

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


def is_download_unlocked(contract) -> bool:
    return contract is not None and contract.status == ContractStatus.PAID.value


class CheckoutFlow:
    CURRENCY = "eur"

    def __init__(self, db, payment_client: PaymentClient, simulator=None):
        self.db = db
        self.payment_client = payment_client
        # Demo processor used by simulate_payment; see MockPaymentsClient.
        self.simulator = simulator

    # ------------------------------------------------------------------ #
    # Guards
    # ------------------------------------------------------------------ #
    def _payable_contract(self, contract_id: str):
        contract = self.db.get_contract(contract_id)
        if not contract:
            raise ContractNotFoundError(contract_id)
        if contract.status not in PAYABLE_STATUSES:
            raise CheckoutError(
                f"Contract status is {contract.status}, must be draft for payment",
                reason="invalid_status",
            )
        if not contract.total_amount or Decimal(str(contract.total_amount)) <= 0:
            raise CheckoutError("Contract must have a valid total amount", reason="invalid_amount")
        return contract

    def _payment_request(self, contract, method: str = "card") -> PaymentRequest:
        return PaymentRequest(
            reference=str(contract.id),
            amount=Decimal(str(contract.total_amount)),
            currency=self.CURRENCY,
            description=f"{contract.contract_type} - PalWorks Contract #{str(contract.id)[:8]}",
            customer_email=contract.customer_email,
            method=method,
            metadata={
                "contract_id": str(contract.id),
                "contract_type": contract.contract_type,
                "customer_email": contract.customer_email,
            },
        )

    # ------------------------------------------------------------------ #
    # Processor checkout
    # ------------------------------------------------------------------ #
    async def create_payment_intent(self, contract_id: str) -> Dict[str, Any]:
        contract = self._payable_contract(contract_id)

        if contract.payment_intent_id:
            existing = await self.payment_client.retrieve_payment(contract.payment_intent_id)
            if existing is not None and self._reusable(existing):
                logger.info("[Checkout] Reusing payment intent %s for %s", existing.provider_reference, contract.id)
                return self._intent_payload(contract, existing, reused=True)
            logger.info("[Checkout] Existing payment intent of %s is not reusable, creating a new one", contract.id)

        response = await self.payment_client.initiate_payment(self._payment_request(contract))

        self.db.update_contract(
            contract.id,
            {"payment_intent_id": response.provider_reference, "payment_status": "pending"},
        )
        self.db.log_payment_attempt(
            contract_id=str(contract.id),
            payment_intent_id=response.provider_reference,
            amount=response.amount,
            currency=response.currency,
            payment_method="card",
            status=response.status.value,
            provider_response=self._provider_snapshot(response),
            customer_email=contract.customer_email,
        )
        return self._intent_payload(contract, response, reused=False)

    @staticmethod
    def _reusable(existing: PaymentResponse) -> bool:
        stripe_status = (existing.metadata or {}).get("stripe_status", "requires_payment_method")
        return existing.status == PaymentStatus.PENDING and stripe_status == "requires_payment_method"

    def _intent_payload(self, contract, response: PaymentResponse, *, reused: bool) -> Dict[str, Any]:
        return {
            "success": True,
            "payment_intent": {
                "id": response.provider_reference,
                "client_secret": response.client_secret,
                "status": response.status.value,
            },
            "amount": float(contract.total_amount),
            "currency": self.CURRENCY,
            "reused": reused,
        }

    # ------------------------------------------------------------------ #
    # Demo checkout
    # ------------------------------------------------------------------ #
    async def simulate_payment(self, contract_id: str, method: str = "card") -> Dict[str, Any]:
        if self.simulator is None:
            raise CheckoutError("Demo payments are not enabled", reason="simulation_disabled")

        contract = self._payable_contract(contract_id)
        response = await self.simulator.simulate_payment(self._payment_request(contract, method))

        self.db.log_payment_attempt(
            contract_id=str(contract.id),
            payment_intent_id=response.provider_reference,
            amount=response.amount,
            currency=response.currency,
            payment_method=method,
            status=response.status.value,
            provider_response=self._provider_snapshot(response),
            customer_email=contract.customer_email,
        )
        updated = self.apply_payment_status(
            str(contract.id),
            response.status,
            payment_intent_id=response.provider_reference,
            amount=response.amount,
        )

        succeeded = response.status == PaymentStatus.SUCCEEDED
        return {
            "success": succeeded,
            "payment_id": response.provider_reference,
            "transaction_id": (response.metadata or {}).get("transaction_id"),
            "status": response.status.value,
            "message": response.message,
            "amount": float(response.amount),
            "currency": response.currency,
            "download_unlocked": is_download_unlocked(updated),
        }

    # ------------------------------------------------------------------ #
    # Status updates (demo checkout and processor webhooks)
    # ------------------------------------------------------------------ #
    def apply_payment_status(
        self,
        contract_id: str,
        status: PaymentStatus,
        *,
        payment_intent_id: Optional[str] = None,
        provider_response: Optional[Dict[str, Any]] = None,
        amount: Optional[Decimal] = None,
        require_current_intent: bool = False,
    ):
        """
        Map a payment outcome onto the contract.

        With `require_current_intent` (processor events) only the intent stored
        on the contract may change it; events of an intent superseded by a
        reprice are logged and ignored. A success for less than the contract
        total never marks the contract paid.
        """
        contract = self.db.get_contract(contract_id)
        if not contract:
            raise ContractNotFoundError(contract_id)

        if require_current_intent and payment_intent_id != contract.payment_intent_id:
            log = logger.error if status == PaymentStatus.SUCCEEDED else logger.warning
            log(
                "[Checkout] Ignoring '%s' from payment intent %s; contract %s expects %s",
                status.value,
                payment_intent_id,
                contract_id,
                contract.payment_intent_id,
            )
            self._record_log_status(payment_intent_id, status, provider_response)
            return contract

        if status == PaymentStatus.SUCCEEDED and amount is not None:
            if Decimal(str(amount)) < Decimal(str(contract.total_amount)):
                logger.error(
                    "[Checkout] Payment %s for contract %s covers %s of %s; not marking paid",
                    payment_intent_id,
                    contract_id,
                    amount,
                    contract.total_amount,
                )
                self._record_log_status(payment_intent_id, status, provider_response)
                return contract

        if contract.status == ContractStatus.PAID.value and status != PaymentStatus.SUCCEEDED:
            logger.warning(
                "[Checkout] Ignoring '%s' for already paid contract %s", status.value, contract_id
            )
            return contract

        contract_status, payment_status = CONTRACT_STATUS_FOR_PAYMENT[status]
        updated = self.db.update_contract_payment_status(
            contract_id,
            payment_status,
            status=contract_status,
            payment_intent_id=payment_intent_id,
        )
        self._record_log_status(payment_intent_id, status, provider_response)

        logger.info("[Checkout] Contract %s -> payment_status=%s", contract_id, payment_status)
        return updated

    def _record_log_status(
        self,
        payment_intent_id: Optional[str],
        status: PaymentStatus,
        provider_response: Optional[Dict[str, Any]],
    ) -> None:
        if payment_intent_id:
            self.db.update_payment_status(payment_intent_id, status.value, provider_response)

    @staticmethod
    def _provider_snapshot(response: PaymentResponse) -> Dict[str, Any]:
        return {
            "id": response.provider_reference,
            "status": response.status.value,
            "amount": float(response.amount),
            "currency": response.currency,
            "message": response.message,
            "created": response.timestamp.isoformat(),
        }
