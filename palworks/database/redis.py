"""
In-memory session cache for local development and tests.

Stores pricing sessions and per-contract-type form drafts with the same
interface as palworks.database.redis_real, so the API runs without Redis.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional


class RedisCache:
    def __init__(self) -> None:
        # session_id -> serialized PricingSession
        self._sessions: Dict[str, Dict[str, Any]] = {}
        # "<session_id>:<contract_type>" -> form data
        self._form_drafts: Dict[str, Dict[str, Any]] = {}

    # --- Pricing sessions -----------------------------------------------------

    def set_session(self, session_id: str, data: Dict[str, Any], ttl: int = 86400) -> None:
        # TTL is ignored in this in-memory implementation.
        self._sessions[session_id] = copy.deepcopy(data)

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        data = self._sessions.get(session_id)
        return copy.deepcopy(data) if data is not None else None

    def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    # --- Form drafts ----------------------------------------------------------

    def _draft_key(self, session_id: str, contract_type: str) -> str:
        return f"{session_id}:{contract_type}"

    def set_form_draft(self, session_id: str, contract_type: str, data: Dict[str, Any], ttl: int = 604800) -> None:
        self._form_drafts[self._draft_key(session_id, contract_type)] = copy.deepcopy(data)

    def get_form_draft(self, session_id: str, contract_type: str) -> Optional[Dict[str, Any]]:
        data = self._form_drafts.get(self._draft_key(session_id, contract_type))
        return copy.deepcopy(data) if data is not None else None

    def delete_form_draft(self, session_id: str, contract_type: str) -> None:
        self._form_drafts.pop(self._draft_key(session_id, contract_type), None)

    def ping(self) -> bool:
        return True
