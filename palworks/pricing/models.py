"""Value objects produced by the pricing engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List


@dataclass(frozen=True)
class AddonLine:
    key: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class PriceQuote:
    """
    Derived price for one contract: base price plus the resolvable selected addons.

    Amounts are kept at full precision. Use `format_price` for display.
    """

    base_price: Decimal
    addon_breakdown: List[AddonLine] = field(default_factory=list)
    total: Decimal = Decimal("0")
    currency: str = "EUR"

    @property
    def addon_total(self) -> Decimal:
        return sum((line.price for line in self.addon_breakdown), Decimal("0"))

    @property
    def addon_keys(self) -> List[str]:
        return [line.key for line in self.addon_breakdown]

    def addon_prices(self) -> Dict[str, float]:
        return {line.key: float(line.price) for line in self.addon_breakdown}

    def to_dict(self) -> Dict[str, Any]:
        from .engine import format_price

        return {
            "base_price": float(self.base_price),
            "addon_breakdown": [
                {"key": line.key, "name": line.name, "price": float(line.price)}
                for line in self.addon_breakdown
            ],
            "addon_total": float(self.addon_total),
            "total": float(self.total),
            "currency": self.currency,
            "formatted": {
                "base_price": format_price(self.base_price),
                "total": format_price(self.total),
            },
        }
