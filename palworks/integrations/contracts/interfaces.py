from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class ContractStatus(str, Enum):
    DRAFT = "draft"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"
    CANCELED = "canceled"


class CatalogueState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FALLBACK = "fallback"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class Addon:
    key: str
    name: str
    price: Decimal
    description: Optional[str] = None
    features: List[str] = field(default_factory=list)
    sort_order: int = 0
    is_active: bool = True
    id: Optional[str] = None            # row id of the remote catalogue, if any
    category: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "id": self.id or self.key,
            "name": self.name,
            "price": float(self.price),
            "description": self.description,
            "features": list(self.features),
            "sort_order": self.sort_order,
            "category": self.category,
        }


@dataclass
class PaymentRequest:
    reference: str                       # contract id
    amount: Decimal
    currency: str
    description: str
    customer_email: Optional[str] = None
    method: str = "card"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentResponse:
    reference: str
    provider_reference: str
    status: PaymentStatus
    amount: Decimal
    currency: str
    message: str
    client_secret: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract client interfaces
# ---------------------------------------------------------------------------

class AddonCatalogueClient(ABC):
    """Every addon catalogue source (static or remote) implements this."""

    @abstractmethod
    async def fetch_addons(self, contract_type: str) -> List[Addon]:
        """Return the active addons for a contract type, in display order."""


class PaymentClient(ABC):
    """Every payment processor client implements this."""

    @abstractmethod
    async def initiate_payment(self, request: PaymentRequest) -> PaymentResponse:
        """Start a payment for a contract and return its current status."""

    @abstractmethod
    async def retrieve_payment(self, provider_reference: str) -> Optional[PaymentResponse]:
        """Look up an earlier payment. None when the processor does not know it."""
