"""
Static Addon Catalogue Client.

Purpose:
- The one hardcoded addon table of the service, keyed by addon key
- Used as the fallback whenever the Supabase catalogue fails or returns nothing
- Does NOT make any network calls

Usage:
- Wired in palworks/api/services.py as the fallback source of AddonCatalogueService
- Also serves as the primary source when INTEGRATIONS_MODE=mock

Rule:
- Names and prices live in ADDONS only. Contract types list keys, never prices.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List

from palworks.integrations.contracts.interfaces import Addon, AddonCatalogueClient


ADDONS: Dict[str, Dict] = {
    "explanation": {
        "name": "Vertragserläuterungen",
        "price": Decimal("9.90"),
        "description": "Detaillierte Erklärungen zu allen Vertragsklauseln",
        "features": ["Paragraph-für-Paragraph Erklärungen", "Rechtliche Hinweise", "Praxistipps"],
    },
    "handover_protocol": {
        "name": "Übergabeprotokoll",
        "price": Decimal("7.90"),
        "description": "Professionelles Protokoll für die Übergabe",
        "features": ["Zustandsdokumentation", "Zählerstände", "Schlüsselübergabe"],
    },
    "legal_review": {
        "name": "Anwaltliche Prüfung",
        "price": Decimal("29.90"),
        "description": "Prüfung Ihres Vertrags durch einen Fachanwalt",
        "features": ["Individuelle Prüfung", "Rückmeldung innerhalb von 48 Stunden"],
    },
    "insurance_clause": {
        "name": "Versicherungsklauseln",
        "price": Decimal("4.90"),
        "description": "Zusätzliche Klauseln zu Versicherungspflichten",
        "features": ["Haftpflicht", "Schadensregelung"],
    },
    "maintenance_guide": {
        "name": "Wartungshandbuch",
        "price": Decimal("12.90"),
        "description": "Leitfaden zu Wartung und Instandhaltung",
        "features": ["Checklisten", "Zuständigkeiten", "Fristen"],
    },
    "house_rules": {
        "name": "WG-Hausordnung",
        "price": Decimal("6.90"),
        "description": "Vorlage für Regeln des Zusammenlebens",
        "features": ["Ruhezeiten", "Gemeinschaftsräume", "Gäste"],
    },
    "cleaning_schedule": {
        "name": "Putzplan-Template",
        "price": Decimal("3.90"),
        "description": "Wöchentlicher Putzplan für die WG",
        "features": ["Rotationsplan", "Aufgabenliste"],
    },
}

CONTRACT_TYPE_ADDONS: Dict[str, List[str]] = {
    "untermietvertrag": ["explanation", "handover_protocol", "legal_review"],
    "garage": ["explanation", "insurance_clause", "maintenance_guide"],
    "wg": ["explanation", "handover_protocol", "house_rules", "cleaning_schedule"],
}


def static_addons(contract_type: str) -> List[Addon]:
    """Return fresh Addon objects for a contract type. Unknown types yield []."""
    result: List[Addon] = []
    for order, key in enumerate(CONTRACT_TYPE_ADDONS.get(contract_type, []), start=1):
        row = ADDONS[key]
        result.append(
            Addon(
                key=key,
                name=row["name"],
                price=row["price"],
                description=row.get("description"),
                features=list(row.get("features", [])),
                sort_order=order,
            )
        )
    return result


class StaticAddonCatalogueClient(AddonCatalogueClient):
    async def fetch_addons(self, contract_type: str) -> List[Addon]:
        return static_addons(contract_type)


