"""
API key protection for the contract API.

Every route requires an `X-API-KEY` header matching one of the comma-separated
keys in `API_KEYS`. Health, docs and the Stripe webhook are public; Stripe
signs its requests instead.
"""

import hmac
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Header, HTTPException, Request, status

load_dotenv()

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset(
    {
        "/",
        "/health",
        "/openapi.json",
        "/redoc",
        "/api/v1/payments/webhook",
    }
)
PUBLIC_PREFIXES = ("/docs",)


def get_api_keys() -> List[str]:
    return [k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()]


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def is_valid_api_key(candidate: Optional[str], keys: List[str]) -> bool:
    candidate = (candidate or "").strip()
    return bool(candidate) and any(hmac.compare_digest(candidate, k) for k in keys)


async def api_key_protection(
    request: Request = None,  # default None for direct calls/tests
    x_api_key: str = Header(default=None, alias="X-API-KEY"),
):
    path = request.url.path if request is not None else "<no-request>"
    if request is not None and is_public_path(path):
        return

    keys = get_api_keys()
    if not keys:
        logger.warning("API_KEYS is not configured; rejecting request to %s", path)

    if not is_valid_api_key(x_api_key, keys):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
