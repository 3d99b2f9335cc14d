from .engine import (
    LEGACY_FLAG_KEYS,
    LEGACY_KEY_ALIASES,
    compute_total,
    dedupe_keys,
    format_price,
    legacy_flags,
    resolve_addon,
    selection_from_legacy,
    set_addon,
    toggle_addon,
)
from .models import AddonLine, PriceQuote

__all__ = [
    "LEGACY_FLAG_KEYS",
    "LEGACY_KEY_ALIASES",
    "AddonLine",
    "PriceQuote",
    "compute_total",
    "dedupe_keys",
    "format_price",
    "legacy_flags",
    "resolve_addon",
    "selection_from_legacy",
    "set_addon",
    "toggle_addon",
]
