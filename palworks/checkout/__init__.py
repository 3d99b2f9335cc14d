from .flow import CheckoutError, CheckoutFlow, ContractNotFoundError, is_download_unlocked
from .webhooks import StripeWebhookHandler, WebhookVerificationError

__all__ = [
    "CheckoutError",
    "CheckoutFlow",
    "ContractNotFoundError",
    "StripeWebhookHandler",
    "WebhookVerificationError",
    "is_download_unlocked",
]
