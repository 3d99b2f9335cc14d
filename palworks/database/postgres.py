"""
Lightweight in-memory PostgresDB replacement for local development.

Stores contracts and payment logs with the same interface as
palworks.database.postgres_real so the API runs without a database. It is
NOT intended for production use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import uuid

logger = logging.getLogger(__name__)

# Fields a contract update may touch. Everything else is fixed at creation.
CONTRACT_UPDATE_FIELDS = frozenset(
    {
        "form_data",
        "selected_addons",
        "addon_prices",
        "total_amount",
        "customer_email",
        "status",
        "payment_status",
        "payment_intent_id",
        "pdf_url",
        "generated_pdf_url",
    }
)


@dataclass
class Contract:
    id: str
    contract_type: str
    form_data: Dict[str, Any]
    selected_addons: List[str]
    addon_prices: Dict[str, float]
    base_price: Decimal
    total_amount: Decimal
    customer_email: Optional[str] = None
    status: str = "draft"
    payment_status: str = "pending"
    payment_intent_id: Optional[str] = None
    pdf_url: Optional[str] = None
    generated_pdf_url: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class PaymentLog:
    id: str
    contract_id: str
    payment_intent_id: str
    amount: Decimal
    currency: str
    payment_method: str
    status: str
    provider_response: Dict[str, Any] = field(default_factory=dict)
    customer_email: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


class PostgresDB:
    """
    In-memory stand-in for the Postgres-backed contract store.
    """

    def __init__(self) -> None:
        self._contracts: Dict[str, Contract] = {}
        self._payment_logs: List[PaymentLog] = []

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """No-op for the in-memory implementation."""
        return None

    # ------------------------------------------------------------------ #
    # Contracts
    # ------------------------------------------------------------------ #
    def create_contract(
        self,
        *,
        contract_type: str,
        form_data: Dict[str, Any],
        selected_addons: List[str],
        addon_prices: Dict[str, float],
        base_price: Decimal,
        total_amount: Decimal,
        customer_email: Optional[str] = None,
        status: str = "draft",
    ) -> Contract:
        contract = Contract(
            id=str(uuid.uuid4()),
            contract_type=contract_type,
            form_data=dict(form_data),
            selected_addons=list(selected_addons),
            addon_prices=dict(addon_prices),
            base_price=Decimal(str(base_price)),
            total_amount=Decimal(str(total_amount)),
            customer_email=customer_email,
            status=status,
        )
        self._contracts[contract.id] = contract
        return contract

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        return self._contracts.get(str(contract_id))

    def update_contract(self, contract_id: str, updates: Dict[str, Any]) -> Optional[Contract]:
        contract = self._contracts.get(str(contract_id))
        if contract is None:
            return None
        for key, value in updates.items():
            if key not in CONTRACT_UPDATE_FIELDS:
                logger.debug("Ignoring non-updatable contract field '%s'", key)
                continue
            if key == "total_amount":
                value = Decimal(str(value))
            setattr(contract, key, value)
        contract.updated_at = datetime.utcnow()
        return contract

    def update_contract_payment_status(
        self,
        contract_id: str,
        payment_status: str,
        *,
        status: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
    ) -> Optional[Contract]:
        updates: Dict[str, Any] = {"payment_status": payment_status}
        if status:
            updates["status"] = status
        if payment_intent_id:
            updates["payment_intent_id"] = payment_intent_id
        return self.update_contract(contract_id, updates)

    def list_contracts_by_email(self, customer_email: str) -> List[Contract]:
        found = [c for c in self._contracts.values() if c.customer_email == customer_email]
        found.sort(key=lambda c: c.created_at, reverse=True)
        return found

    def find_contract_by_payment_intent(self, payment_intent_id: str) -> Optional[Contract]:
        for contract in self._contracts.values():
            if contract.payment_intent_id == payment_intent_id:
                return contract
        return None

    # ------------------------------------------------------------------ #
    # Payment logs
    # ------------------------------------------------------------------ #
    def log_payment_attempt(
        self,
        *,
        contract_id: str,
        payment_intent_id: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        status: str,
        provider_response: Optional[Dict[str, Any]] = None,
        customer_email: Optional[str] = None,
    ) -> PaymentLog:
        log = PaymentLog(
            id=str(uuid.uuid4()),
            contract_id=contract_id,
            payment_intent_id=payment_intent_id,
            amount=Decimal(str(amount)),
            currency=currency,
            payment_method=payment_method,
            status=status,
            provider_response=provider_response or {},
            customer_email=customer_email,
        )
        self._payment_logs.append(log)
        return log

    def update_payment_status(
        self,
        payment_intent_id: str,
        status: str,
        provider_response: Optional[Dict[str, Any]] = None,
    ) -> List[PaymentLog]:
        updated = []
        for log in self._payment_logs:
            if log.payment_intent_id != payment_intent_id:
                continue
            log.status = status
            if provider_response is not None:
                log.provider_response = provider_response
            log.updated_at = datetime.utcnow()
            updated.append(log)
        return updated

    def get_payment_logs(self, contract_id: str) -> List[PaymentLog]:
        logs = [log for log in self._payment_logs if log.contract_id == contract_id]
        logs.sort(key=lambda log: log.created_at, reverse=True)
        return logs
