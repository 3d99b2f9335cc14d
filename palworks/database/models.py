"""
SQLAlchemy models for contracts and payment logs.
Used by postgres_real when USE_POSTGRES_CONTRACTS and DATABASE_URL are set.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4
from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Contract(Base):
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    contract_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    form_data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    selected_addons: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    addon_prices: Mapped[Dict[str, float]] = mapped_column(JSON, default=dict, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    payment_intent_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    pdf_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    generated_pdf_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    payment_logs: Mapped[list["PaymentLog"]] = relationship("PaymentLog", back_populates="contract")


class PaymentLog(Base):
    __tablename__ = "payment_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    contract_id: Mapped[str] = mapped_column(String(36), ForeignKey("contracts.id"), nullable=False, index=True)
    payment_intent_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="eur", nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), default="card", nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_response: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    contract: Mapped["Contract"] = relationship("Contract", back_populates="payment_logs")
