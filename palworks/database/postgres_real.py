"""
Real Postgres-backed contract store for production when USE_POSTGRES_CONTRACTS and DATABASE_URL are set.
Implements the same interface as palworks.database.postgres (in-memory stub).
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from palworks.database.models import Base, Contract, PaymentLog
from palworks.database.postgres import CONTRACT_UPDATE_FIELDS

logger = logging.getLogger(__name__)


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


class PostgresDB:
    """
    Contract store using SQLAlchemy. Use when DATABASE_URL is set and
    USE_POSTGRES_CONTRACTS=true.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if not connection_string.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(connection_string, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Session:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

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
        with self._session() as s:
            c = Contract(
                id=str(uuid4()),
                contract_type=contract_type,
                form_data=dict(form_data),
                selected_addons=list(selected_addons),
                addon_prices=dict(addon_prices),
                base_price=Decimal(str(base_price)),
                total_amount=Decimal(str(total_amount)),
                customer_email=customer_email,
                status=status,
                payment_status="pending",
            )
            s.add(c)
            s.flush()
            s.refresh(c)
            return c

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        with self._session() as s:
            return s.get(Contract, str(contract_id))

    def update_contract(self, contract_id: str, updates: Dict[str, Any]) -> Optional[Contract]:
        with self._session() as s:
            c = s.get(Contract, str(contract_id))
            if c is None:
                return None
            for key, value in updates.items():
                if key not in CONTRACT_UPDATE_FIELDS:
                    logger.debug("Ignoring non-updatable contract field '%s'", key)
                    continue
                if key == "total_amount":
                    value = Decimal(str(value))
                setattr(c, key, value)
            s.flush()
            s.refresh(c)
            return c

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
        with self._session() as s:
            stmt = (
                select(Contract)
                .where(Contract.customer_email == customer_email)
                .order_by(Contract.created_at.desc())
            )
            return list(s.execute(stmt).scalars().all())

    def find_contract_by_payment_intent(self, payment_intent_id: str) -> Optional[Contract]:
        with self._session() as s:
            stmt = select(Contract).where(Contract.payment_intent_id == payment_intent_id)
            return s.execute(stmt).scalars().first()

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
        with self._session() as s:
            log = PaymentLog(
                id=str(uuid4()),
                contract_id=contract_id,
                payment_intent_id=payment_intent_id,
                amount=Decimal(str(amount)),
                currency=currency,
                payment_method=payment_method,
                status=status,
                provider_response=provider_response or {},
                customer_email=customer_email,
            )
            s.add(log)
            s.flush()
            s.refresh(log)
            return log

    def update_payment_status(
        self,
        payment_intent_id: str,
        status: str,
        provider_response: Optional[Dict[str, Any]] = None,
    ) -> List[PaymentLog]:
        with self._session() as s:
            stmt = select(PaymentLog).where(PaymentLog.payment_intent_id == payment_intent_id)
            logs = list(s.execute(stmt).scalars().all())
            for log in logs:
                log.status = status
                if provider_response is not None:
                    log.provider_response = provider_response
            s.flush()
            return logs

    def get_payment_logs(self, contract_id: str) -> List[PaymentLog]:
        with self._session() as s:
            stmt = (
                select(PaymentLog)
                .where(PaymentLog.contract_id == contract_id)
                .order_by(PaymentLog.created_at.desc())
            )
            return list(s.execute(stmt).scalars().all())
