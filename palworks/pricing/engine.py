"""
Addon pricing engine.

Every consumer (form session, contract creation, preview, checkout) prices a
contract through these functions. Nothing here does I/O or keeps state.

Catalog entries may be `Addon` objects or raw mappings in either catalogue
shape ({"addon_key": ...} from the static table, {"id": ..., "price": "9.90"}
from the remote table).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from palworks.integrations.contracts.addons import normalize_addon_record
from palworks.integrations.contracts.interfaces import Addon
from palworks.integrations.policy.response_wrappers import IntegrationResponseError

from .models import AddonLine, PriceQuote

logger = logging.getLogger(__name__)

CatalogEntry = Union[Addon, Mapping[str, Any]]

# Legacy boolean form fields and the addon key each one stands for.
LEGACY_FLAG_KEYS: Dict[str, str] = {
    "include_protocol": "handover_protocol",
    "include_explanations": "explanation",
}

# Keys older forms stored before the catalogue was unified.
LEGACY_KEY_ALIASES: Dict[str, str] = {
    "protocol": "handover_protocol",
}

_CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def resolve_addon(catalog: Iterable[CatalogEntry], key: str) -> Optional[Addon]:
    """
    Find an active addon by key.

    A record matches when its `key` equals `key`, or, for rows that only carry
    a remote row id, when that id equals `key`. Returns None when nothing
    matches.
    """
    if not key:
        return None

    by_id: Optional[Addon] = None
    for entry in catalog:
        addon = _as_addon(entry)
        if addon is None or not addon.is_active:
            continue
        if addon.key == key:
            return addon
        if by_id is None and addon.id == key:
            by_id = addon
    return by_id


def _as_addon(entry: CatalogEntry) -> Optional[Addon]:
    if isinstance(entry, Addon):
        return entry
    if not isinstance(entry, Mapping):
        logger.debug("[Pricing] Skipping catalog entry of type %s", type(entry).__name__)
        return None
    try:
        return normalize_addon_record(entry)
    except IntegrationResponseError as exc:
        logger.debug("[Pricing] Skipping malformed catalog entry: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

def compute_total(
    base_price: Union[Decimal, float, int, str],
    catalog: Iterable[CatalogEntry],
    selected_keys: Iterable[str],
    currency: str = "EUR",
) -> PriceQuote:
    base = Decimal(str(base_price))
    entries = list(catalog)

    breakdown: List[AddonLine] = []
    seen = set()
    for key in selected_keys:
        if key in seen:
            continue
        seen.add(key)

        addon = resolve_addon(entries, key)
        if addon is None:
            logger.debug("[Pricing] Ignoring unknown or inactive addon key '%s'", key)
            continue
        # The same addon may be selected by key and by remote row id.
        if any(line.key == addon.key for line in breakdown):
            continue
        breakdown.append(AddonLine(key=addon.key, name=addon.name, price=addon.price))

    total = base + sum((line.price for line in breakdown), Decimal("0"))
    return PriceQuote(base_price=base, addon_breakdown=breakdown, total=total, currency=currency)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def toggle_addon(selected_keys: Sequence[str], key: str) -> List[str]:
    """Append `key` when absent, drop every occurrence when present."""
    if key in selected_keys:
        return [k for k in selected_keys if k != key]
    return list(selected_keys) + [key]


def set_addon(selected_keys: Sequence[str], key: str, enabled: bool) -> List[str]:
    present = key in selected_keys
    if enabled == present:
        return list(selected_keys)
    return toggle_addon(selected_keys, key)


def dedupe_keys(selected_keys: Iterable[str]) -> List[str]:
    out: List[str] = []
    for key in selected_keys:
        if key and key not in out:
            out.append(key)
    return out


def legacy_flags(selected_keys: Sequence[str]) -> Dict[str, bool]:
    return {flag: key in selected_keys for flag, key in LEGACY_FLAG_KEYS.items()}


def selection_from_legacy(selected_keys: Sequence[str], payload: Mapping[str, Any]) -> List[str]:
    """
    Fold legacy boolean fields of an older form payload into the selection.

    Old key aliases are rewritten first. Then an explicit True adds the mapped
    key and an explicit False removes it. A missing flag leaves the selection
    alone.
    """
    result = dedupe_keys(LEGACY_KEY_ALIASES.get(k, k) for k in selected_keys)
    for flag, key in LEGACY_FLAG_KEYS.items():
        if flag not in payload or payload[flag] is None:
            continue
        result = set_addon(result, key, bool(payload[flag]))
    return result


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def format_price(amount: Union[Decimal, float, int, str], currency: str = "€") -> str:
    """German display format, e.g. Decimal("12.9") -> "12,90 €"."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, fraction = f"{abs(value):.2f}".partition(".")

    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)

    text = f"{sign}{'.'.join(groups)},{fraction}"
    return f"{text} {currency}" if currency else text
