"""Tests for the session caches (in-memory stub and Redis-backed)."""

import json
from unittest.mock import MagicMock

import redis

from palworks.database import redis_real
from palworks.database.redis import RedisCache


def test_stub_returns_copies(cache):
    data = {"selected_addons": ["explanation"]}
    cache.set_session("s1", data)
    data["selected_addons"].append("mutated")

    loaded = cache.get_session("s1")
    loaded["selected_addons"].append("again")

    assert cache.get_session("s1") == {"selected_addons": ["explanation"]}


def test_stub_form_drafts_are_per_contract_type():
    cache = RedisCache()
    cache.set_form_draft("s1", "garage", {"rent": "80"})
    cache.set_form_draft("s1", "wg", {"rent_amount": "390"})

    assert cache.get_form_draft("s1", "garage") == {"rent": "80"}
    cache.delete_form_draft("s1", "garage")
    assert cache.get_form_draft("s1", "garage") is None
    assert cache.get_form_draft("s1", "wg") == {"rent_amount": "390"}


def _redis_cache(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(redis_real.redis, "from_url", lambda url, decode_responses: client)
    return redis_real.RedisCache(url="redis://localhost:6379/0"), client


def test_redis_session_is_stored_as_json_with_ttl(monkeypatch):
    cache, client = _redis_cache(monkeypatch)

    cache.set_session("s1", {"contract_type": "garage"})

    key, ttl, payload = client.setex.call_args.args
    assert key == "pricing_session:s1"
    assert ttl == 86400
    assert json.loads(payload) == {"contract_type": "garage"}


def test_redis_draft_key_and_ttl(monkeypatch):
    cache, client = _redis_cache(monkeypatch)

    cache.set_form_draft("s1", "wg", {"rent_amount": "390"})

    key, ttl, _ = client.setex.call_args.args
    assert key == "form_draft:wg:s1"
    assert ttl == 604800


def test_redis_unreadable_entry_is_discarded(monkeypatch):
    cache, client = _redis_cache(monkeypatch)
    client.get.return_value = "{not json"
    assert cache.get_session("s1") is None


def test_redis_ping_failure(monkeypatch):
    cache, client = _redis_cache(monkeypatch)
    client.ping.side_effect = redis.ConnectionError("refused")
    assert cache.ping() is False
