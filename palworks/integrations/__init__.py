"""
Integrations layer.
This package contains all code used to communicate with external systems such as:
- The addon catalogue (Supabase `contract_addons` table, static fallback table)
- Payment processing (Stripe PaymentIntents, simulated demo payments)

Key rule:
- Pricing, forms and checkout MUST NOT call external APIs directly.
- They call integration clients (under palworks/integrations/clients) through the
  interfaces in contracts/interfaces.py.
- We use MOCK clients during development and swap to REAL_HTTP clients when credentials are configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (palworks/api/services.py).
"""

from .contracts.interfaces import (
    Addon,
    AddonCatalogueClient,
    CatalogueState,
    ContractStatus,
    PaymentClient,
    PaymentRequest,
    PaymentResponse,
    PaymentStatus,
)
from .contracts.addons import coerce_price, find_catalog_divergences, normalize_addon_record
from .contracts.payments import (
    PaymentProcessorError,
    format_payment_error,
    to_minor_units,
    validate_payment_request,
)

__all__ = [
    # interfaces
    "Addon", "AddonCatalogueClient", "CatalogueState", "ContractStatus",
    "PaymentClient", "PaymentRequest", "PaymentResponse", "PaymentStatus",
    # addons
    "coerce_price", "find_catalog_divergences", "normalize_addon_record",
    # payments
    "PaymentProcessorError", "format_payment_error",
    "to_minor_units", "validate_payment_request",
]
