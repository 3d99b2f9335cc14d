"""
Redis-backed session cache, used when REDIS_URL is set. Implements the same
interface as palworks.database.redis (in-memory stub).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import redis

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, url: str, session_ttl: int = 86400, draft_ttl: int = 604800) -> None:
        self._client = redis.from_url(url, decode_responses=True)
        self._session_ttl = session_ttl
        self._draft_ttl = draft_ttl

    def _load(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._client.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable cache entry %s", key)
            return None

    # --- Pricing sessions -----------------------------------------------------

    def set_session(self, session_id: str, data: Dict[str, Any], ttl: int = 0) -> None:
        payload = json.dumps(data, default=str)
        self._client.setex(f"pricing_session:{session_id}", ttl or self._session_ttl, payload)

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self._load(f"pricing_session:{session_id}")

    def delete_session(self, session_id: str) -> None:
        self._client.delete(f"pricing_session:{session_id}")

    # --- Form drafts ----------------------------------------------------------

    def _draft_key(self, session_id: str, contract_type: str) -> str:
        return f"form_draft:{contract_type}:{session_id}"

    def set_form_draft(self, session_id: str, contract_type: str, data: Dict[str, Any], ttl: int = 0) -> None:
        payload = json.dumps(data, default=str)
        self._client.setex(self._draft_key(session_id, contract_type), ttl or self._draft_ttl, payload)

    def get_form_draft(self, session_id: str, contract_type: str) -> Optional[Dict[str, Any]]:
        return self._load(self._draft_key(session_id, contract_type))

    def delete_form_draft(self, session_id: str, contract_type: str) -> None:
        self._client.delete(self._draft_key(session_id, contract_type))

    def ping(self) -> bool:
        try:
            return self._client.ping()
        except redis.RedisError:
            return False
