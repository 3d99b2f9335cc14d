from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from .interfaces import PaymentRequest, PaymentStatus

"""
Payment contracts.

Defines the expected request/response structures for payment operations, e.g.:
- creating a payment intent for a contract
- simulating a payment in demo mode
- processing webhook callbacks

These contracts must be used by both:
- clients/mocks/payments.py (simulated payments, no network)
- clients/real_http/stripe_payments.py (Stripe PaymentIntents)
"""

# Webhook event type -> payment status it reports.
WEBHOOK_EVENT_STATUS: Dict[str, PaymentStatus] = {
    "payment_intent.succeeded": PaymentStatus.SUCCEEDED,
    "payment_intent.payment_failed": PaymentStatus.FAILED,
    "payment_intent.canceled": PaymentStatus.CANCELED,
    "payment_intent.processing": PaymentStatus.PROCESSING,
}

# Payment status -> (contract.status, contract.payment_status). None keeps the status.
CONTRACT_STATUS_FOR_PAYMENT: Dict[PaymentStatus, tuple] = {
    PaymentStatus.SUCCEEDED: ("paid", "paid"),
    PaymentStatus.FAILED: ("payment_failed", "payment_failed"),
    PaymentStatus.CANCELED: ("canceled", "canceled"),
    PaymentStatus.PROCESSING: (None, "processing"),
    PaymentStatus.PENDING: (None, "pending"),
}

PAYMENT_ERROR_MESSAGES: Dict[str, str] = {
    "card_declined": "Ihre Karte wurde abgelehnt. Bitte versuchen Sie eine andere Zahlungsmethode.",
    "insufficient_funds": "Nicht ausreichende Deckung. Bitte prüfen Sie Ihr Konto.",
    "incorrect_cvc": "Die Kartenprüfnummer ist falsch. Bitte prüfen Sie die CVC.",
    "expired_card": "Ihre Karte ist abgelaufen. Bitte verwenden Sie eine gültige Karte.",
    "processing_error": "Ein Fehler ist bei der Verarbeitung aufgetreten. Bitte versuchen Sie es erneut.",
    "incorrect_number": "Die Kartennummer ist falsch. Bitte prüfen Sie die Nummer.",
}
UNKNOWN_PAYMENT_ERROR = "Ein unbekannter Fehler ist aufgetreten."


class PaymentProcessorError(Exception):
    """The processor rejected a request. `message` is safe to show to the customer."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def to_minor_units(amount: Decimal) -> int:
    """EUR -> cents, rounded half-up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(int(amount)) / 100).quantize(Decimal("0.01"))


def validate_payment_request(request: PaymentRequest) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the request is valid.
    """
    errors: List[str] = []

    if not request.reference:
        errors.append("reference is required")
    if request.amount is None or Decimal(str(request.amount)) <= 0:
        errors.append("amount must be greater than zero")
    if not request.currency:
        errors.append("currency is required")
    if not request.description:
        errors.append("description is required")
    if request.customer_email and "@" not in request.customer_email:
        errors.append(f"customer_email '{request.customer_email}' does not look valid")

    return errors


def format_payment_error(code: Optional[str], message: Optional[str] = None) -> str:
    """German message for a processor decline code, else the processor's own message."""
    if code and code in PAYMENT_ERROR_MESSAGES:
        return PAYMENT_ERROR_MESSAGES[code]
    return message or UNKNOWN_PAYMENT_ERROR
