from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .interfaces import Addon
from palworks.integrations.policy.response_wrappers import IntegrationResponseError

"""
Addon catalogue contracts.

Defines the shape of an addon record used by the pricing engine, e.g.:
- key (addon_key), name, price
- description, features, sort_order (display metadata only)
- is_active (inactive rows never reach pricing)

These contracts must be used by both:
- clients/mocks/static_addon_catalogue.py (fallback catalogue shipped with the service)
- clients/real_http/supabase_addons.py (contract_addons table in Supabase)

Why:
- The two sources historically used different shapes ("addon_key" vs "id",
  numeric vs string prices). Normalizing here keeps the engine shape-agnostic.
"""


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_addon_record(raw: Mapping[str, Any]) -> Addon:
    """Build an Addon from either the static or the remote row shape."""
    key = _first_present(raw, "addon_key", "key", "id")
    if key is None or not str(key).strip():
        raise IntegrationResponseError("Addon record has no key/addon_key/id.", payload=dict(raw))

    name = raw.get("name")
    if not name:
        raise IntegrationResponseError(f"Addon '{key}' has no name.", payload=dict(raw))

    price = coerce_price(raw.get("price"), label=f"price of addon '{key}'")
    row_id = raw.get("id")

    return Addon(
        key=str(key).strip(),
        name=str(name),
        price=price,
        description=raw.get("description"),
        features=list(raw.get("features") or []),
        sort_order=int(raw.get("sort_order") or 0),
        is_active=_as_bool(raw.get("is_active", True)),
        id=str(row_id) if row_id is not None else None,
        category=str(raw.get("category") or "general"),
    )


def coerce_price(value: Any, label: str = "price") -> Decimal:
    if isinstance(value, bool) or value is None:
        raise IntegrationResponseError(f"Invalid {label}: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid {label}: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise IntegrationResponseError(f"{label.capitalize()} must be >= 0; got {value!r}.")
    return amount


# ---------------------------------------------------------------------------
# Consistency checks
# ---------------------------------------------------------------------------

def find_catalog_divergences(catalogs: Mapping[str, Iterable[Addon]]) -> List[Dict[str, Any]]:
    """
    Report addon keys whose name or price differs between catalogues.

    `catalogs` maps a label (a contract type, or "static:garage" / "remote:garage")
    to its addons. Every divergence is a data-integrity bug, never intentional.
    """
    seen: Dict[str, List[Tuple[str, Addon]]] = {}
    for label, addons in catalogs.items():
        for addon in addons:
            seen.setdefault(addon.key, []).append((label, addon))

    divergences: List[Dict[str, Any]] = []
    for key, entries in seen.items():
        names = {a.name for _, a in entries}
        prices = {a.price for _, a in entries}
        if len(names) > 1 or len(prices) > 1:
            divergences.append(
                {
                    "key": key,
                    "names": sorted(names),
                    "prices": sorted(float(p) for p in prices),
                    "sources": [label for label, _ in entries],
                }
            )
    return divergences


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        value = data.get(k)
        if value is not None and str(value).strip():
            return value
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "t")
