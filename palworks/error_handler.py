"""Error handling helpers for the contract API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception while processing contract request: %s", exc, exc_info=True)
        return {
            "error": "internal_error",
            "message": "Es ist ein interner Fehler aufgetreten. Bitte versuchen Sie es später erneut.",
            "metadata": {"error": str(exc), "context": context or {}},
        }
