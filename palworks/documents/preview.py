"""
Contract text rendering.

`render_preview` returns the first sections of a contract plus a locked notice
listing what the paid version adds. `render_full_contract` returns every
section and is only served once the contract is paid. PDF layout is not done
here; this module produces structured text only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from palworks.pricing.engine import format_price
from palworks.pricing.models import PriceQuote

BLANK = "[___________]"
LOCKED_HEADLINE = "Vollständiger Vertrag nach Kauf"


@dataclass
class Section:
    title: str
    paragraphs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "paragraphs": list(self.paragraphs)}


@dataclass
class LockedNotice:
    headline: str
    sections: List[str]
    price_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"headline": self.headline, "sections": list(self.sections), "price_label": self.price_label}


@dataclass
class ContractDocument:
    contract_type: str
    title: str
    parties: List[str]
    sections: List[Section]
    subtitle: Optional[str] = None
    locked: Optional[LockedNotice] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_type": self.contract_type,
            "title": self.title,
            "subtitle": self.subtitle,
            "parties": list(self.parties),
            "sections": [s.to_dict() for s in self.sections],
            "locked": self.locked.to_dict() if self.locked else None,
        }

    def to_text(self) -> str:
        lines = [self.title]
        if self.subtitle:
            lines.append(self.subtitle)
        lines.append("")
        lines.extend(self.parties)
        for section in self.sections:
            lines.append("")
            lines.append(section.title)
            lines.extend(section.paragraphs)
        if self.locked:
            lines.append("")
            lines.append(self.locked.headline)
            lines.extend(f"✓ {title}" for title in self.locked.sections)
            lines.append(self.locked.price_label)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def display_value(value: Any, placeholder: str = BLANK) -> str:
    text = "" if value is None else str(value).strip()
    return text or placeholder


def format_date(value: Any, placeholder: str = "[DATUM]") -> str:
    """ISO date -> TT.MM.JJJJ. Empty or unparseable input yields the placeholder."""
    text = "" if value is None else str(value).strip()
    if not text:
        return placeholder
    try:
        d = date.fromisoformat(text[:10])
    except ValueError:
        return placeholder
    return d.strftime("%d.%m.%Y")


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("true", "1", "yes", "ja", "on")


def _positive(value: Any) -> bool:
    try:
        return float(str(value).replace(",", ".")) > 0
    except (TypeError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Garage / Stellplatz
# ---------------------------------------------------------------------------

def _garage_object(data: Dict[str, Any]) -> str:
    return "Garage" if data.get("garage_type") == "garage" else "Stellplatz"


def _garage_title(data: Dict[str, Any]) -> str:
    return f"MIETVERTRAG FÜR {'GARAGE' if data.get('garage_type') == 'garage' else 'STELLPLATZ'}"


def _garage_parties(data: Dict[str, Any]) -> List[str]:
    return [
        "Zwischen",
        f"{display_value(data.get('landlord_firstname'))} {display_value(data.get('landlord_lastname'))}",
        display_value(data.get("landlord_address")),
        f"{display_value(data.get('landlord_postal'))} {display_value(data.get('landlord_city'))}",
        "(Vermieter)",
        "und",
        f"{display_value(data.get('tenant_firstname'), '[VORNAME]')} {display_value(data.get('tenant_lastname'), '[NACHNAME]')}",
        display_value(data.get("tenant_address"), "[STRASSE UND HAUSNUMMER]"),
        f"{display_value(data.get('tenant_postal'), '[PLZ]')} {display_value(data.get('tenant_city'), '[ORT]')}",
        "(Mieter)",
        "wird folgender Mietvertrag geschlossen:",
    ]


def _garage_address(data: Dict[str, Any]) -> str:
    if _truthy(data.get("garage_same_address")):
        return f"{display_value(data.get('landlord_address'))}, {display_value(data.get('landlord_postal'))} {display_value(data.get('landlord_city'))}"
    return (
        f"{display_value(data.get('garage_address'), '[ADRESSE]')}, "
        f"{display_value(data.get('garage_postal'), '[PLZ]')} {display_value(data.get('garage_city'), '[ORT]')}"
    )


def _garage_sections(data: Dict[str, Any]) -> List[Section]:
    article = "die Garage" if data.get("garage_type") == "garage" else "den Stellplatz"
    number = f" {data['garage_number']}" if data.get("garage_number") else ""
    start = format_date(data.get("start_date") or data.get("lease_start"), "[MIETBEGINN]")

    if data.get("garage_lease_type") == "befristet":
        end = format_date(data.get("end_date") or data.get("lease_end"), "[MIETENDE]")
        term = [f"Das Mietverhältnis wird für eine feste Laufzeit vom {start} bis zum {end} geschlossen."]
    else:
        term = [
            f"Das Mietverhältnis beginnt am {start}. Es läuft auf unbestimmte Zeit und kann von jedem Teil "
            "spätestens am 3. Werktag eines Kalendermonats zum Ablauf des übernächsten Kalendermonats gekündigt werden."
        ]
    term.append("Die Kündigung bedarf der Schriftform.")
    if data.get("garage_lease_type") == "unbefristet":
        term.append(
            "Setzt der Mieter den Gebrauch der Mietsache nach Ablauf der Mietzeit fort, so verlängert sich das "
            "Mietverhältnis nicht auf unbestimmte Zeit. § 545 BGB findet insoweit keine Anwendung."
        )

    has_deposit = _truthy(data.get("has_deposit")) or _positive(data.get("deposit"))
    rent = [f"Die Miete beträgt monatlich {display_value(data.get('rent'), '[BETRAG]')} EUR."]
    if _truthy(data.get("has_utilities")):
        rent.append(
            "Daneben ist eine Betriebskostenvorauszahlung für die Betriebskosten im Sinne von § 2 BetrkV zu leisten "
            f"in Höhe von {display_value(data.get('utilities'), '[BETRAG]')} EUR."
        )
    rent.append(
        "Die Miete ist monatlich im Voraus, spätestens am 3. Werktag eines Monats an den Vermieter durch Überweisung "
        f"auf folgendes Konto zu bezahlen: {display_value(data.get('iban'), '[IBAN]')}, {display_value(data.get('bank'), '[BANK]')}."
    )
    if has_deposit:
        rent.append(
            f"Der Mieter zahlt bei Übergabe der Schlüssel eine Kaution von {display_value(data.get('deposit'), '[BETRAG]')} EUR. "
            "Die Kaution wird verzinslich angelegt."
        )

    obj = _garage_object(data)
    return [
        Section("§ 1 Mietgegenstand", [
            f"Vermietet wird {article}{number} in {_garage_address(data)}.",
            "Dem Mieter werden für die Mietzeit folgende Schlüssel/Codeschlüssel/Toröffner ausgehändigt: "
            f"{display_value(data.get('garage_keys'), '1')}",
        ]),
        Section("§ 2 Mietzeit", term),
        Section("§ 3 Mietzins und Mietzahlung" + (", Kaution" if has_deposit else ""), rent),
        Section("§ 4 Mieterhöhung", [
            "Eine Erhöhung der Miete ist frühestens nach Ablauf eines Jahres seit Mietbeginn und nur mit einer "
            "Ankündigungsfrist von drei Monaten zulässig.",
        ]),
        Section("§ 5 Nutzungszweck", [
            f"Die/der {obj} darf nur zum Abstellen von Fahrzeugen und Zubehör genutzt werden.",
            "Das Lagern von feuergefährlichen, explosiven oder umweltgefährdenden Stoffen ist untersagt.",
        ]),
        Section("§ 6 E-Autos & Ladestation", [
            "Das Laden von Elektrofahrzeugen und die Installation einer Ladestation bedürfen der vorherigen "
            "schriftlichen Zustimmung des Vermieters.",
        ]),
        Section("§ 7 Instandhaltung & Haftung", [
            "(1) Der Mieter ist verpflichtet, die Mietsache pfleglich zu behandeln.",
            "(2) Der Mieter haftet für alle Schäden, die durch ihn oder seine Beauftragten verursacht werden.",
            "(3) Der Vermieter haftet nicht für Diebstahl oder Beschädigung der abgestellten Fahrzeuge oder Gegenstände.",
        ]),
        Section("§ 8 Untervermietung", [
            "Die Untervermietung oder sonstige Überlassung an Dritte ist nur mit schriftlicher Zustimmung des Vermieters gestattet.",
        ]),
        Section("§ 9 Beendigung der Mietzeit", [
            "Bei Beendigung des Mietverhältnisses ist die Mietsache geräumt und gereinigt zurückzugeben. "
            "Alle Schlüssel sind zurückzugeben.",
        ]),
        Section("§ 10 Selbständigkeitsklausel", [
            "Dieser Vertrag ist unabhängig von einem etwaigen Wohnraummietverhältnis zwischen den Parteien und "
            "kann selbständig gekündigt werden.",
        ]),
        Section("§ 11 Personenmehrheit", [
            "Sind mehrere Personen Vermieter oder Mieter, so haften sie als Gesamtschuldner.",
            "Willenserklärungen können gegenüber einem von ihnen abgegeben werden und gelten für alle.",
        ]),
        Section("§ 12 Vertragsänderungen", [
            "Änderungen und Ergänzungen dieses Vertrages bedürfen zu ihrer Wirksamkeit der Schriftform.",
            "Sollten einzelne Bestimmungen unwirksam sein, bleibt die Wirksamkeit der übrigen Bestimmungen unberührt.",
        ]),
    ]


# ---------------------------------------------------------------------------
# Untermietvertrag / WG-Untermietvertrag
# ---------------------------------------------------------------------------

def _sublet_parties(data: Dict[str, Any]) -> List[str]:
    return [
        "Zwischen",
        display_value(data.get("landlord_name")),
        display_value(data.get("landlord_address")),
        "(Untervermieter)",
        "und",
        display_value(data.get("tenant_name"), "[Name des Untermieters]"),
        display_value(data.get("tenant_address"), "[Anschrift des Untermieters]"),
        "(Untermieter)",
        "wird folgender Untermietvertrag geschlossen:",
    ]


def _property_lines(data: Dict[str, Any]) -> List[str]:
    lines = [
        f"Straße und Hausnummer: {display_value(data.get('property_address'))}",
        f"Postleitzahl und Ort: {display_value(data.get('property_postal'))} {display_value(data.get('property_city'))}",
    ]
    if data.get("property_floor"):
        lines.append(f"Geschoss: {data['property_floor']}")
    if data.get("property_number"):
        lines.append(f"Whg-Nr.: {data['property_number']}")
    if data.get("property_sqm"):
        lines.append(f"Wohnfläche: ca. {data['property_sqm']} qm")
    return lines


FURNISHED_TEXT = {
    "furnished": "möbliert",
    "partially": "teilmöbliert",
    "unfurnished": "nicht möbliert",
}


def _untermiet_sections(data: Dict[str, Any]) -> List[Section]:
    subject = ["(1) Der Untervermieter ist alleiniger Mieter der Wohnung in:"] + _property_lines(data)
    subject.append(f"(2) Die Wohnung wird {FURNISHED_TEXT.get(data.get('furnished'), 'nicht möbliert')} überlassen.")
    if str(data.get("equipment_list") or "").strip():
        subject.append(f"(3) Mitvermietet sind folgende Ausstattungsgegenstände: {data['equipment_list']}")
    subject.append(
        "(4) Dem Untermieter ist bekannt, dass der Untervermieter selbst Mieter ist und er gegenüber dem "
        "Eigentümer der Wohnung keinen Kündigungsschutz genießt."
    )

    term = [f"(1) Das Mietverhältnis beginnt am {format_date(data.get('start_date'))} und"]
    if data.get("contract_type") == "fixed_term":
        term.append(f"endet am {format_date(data.get('end_date'))}, ohne dass es einer Kündigung bedarf.")
    else:
        term.append(
            "läuft auf unbestimmte Zeit. Es kann von beiden Seiten mit einer Frist von drei Monaten zum Ende "
            "eines Kalendermonats gekündigt werden."
        )
    term.append(
        "(2) Setzt der Untermieter nach Ablauf der Mietzeit den Gebrauch der Mietsache fort, so findet eine "
        "Verlängerung des Mietverhältnisses nach § 545 BGB nicht statt."
    )

    rent = [
        f"(1) Die Monatsmiete beträgt {display_value(data.get('rent_amount'), '[BETRAG]')} EUR und ist monatlich "
        "im Voraus bis zum 3. Werktag eines Monats an den Untervermieter zu zahlen."
    ]
    if str(data.get("heating_costs") or "").strip():
        rent.append(f"(2) Daneben wird eine Pauschale für Heizung und Warmwasser von monatlich {data['heating_costs']} EUR geschuldet.")
    if str(data.get("other_costs") or "").strip():
        rent.append(f"(3) Die Pauschale für die übrigen Nebenkosten beträgt monatlich {data['other_costs']} EUR.")
    if str(data.get("deposit") or "").strip():
        rent.append(f"(4) Der Untermieter leistet eine Kaution in Höhe von {data['deposit']} EUR. Die Zahlung kann in drei Monatsraten erfolgen.")

    return [
        Section("§ 1 Vertragsgegenstand", subject),
        Section("§ 2 Mietzeit", term),
        Section("§ 3 Miete und Nebenkosten", rent),
        Section("§ 4 Nutzung und Instandhaltung", [
            "(1) Der Untermieter ist verpflichtet, die Mieträume pfleglich zu behandeln und nur zu Wohnzwecken zu nutzen.",
            "(2) Schönheitsreparaturen gehen zu Lasten des Untermieters, soweit sie durch normalen Gebrauch erforderlich werden.",
            "(3) Der Untermieter haftet für alle Schäden, die durch ihn oder seine Besucher verursacht werden.",
        ]),
        Section("§ 5 Beendigung des Mietverhältnisses", [
            "(1) Bei Beendigung des Mietverhältnisses ist die Wohnung besenrein und in ordnungsgemäßem Zustand zu übergeben.",
            "(2) Schlüssel sind vollständig zurückzugeben.",
            "(3) Die Kaution wird nach ordnungsgemäßer Übergabe und Abrechnung zurückgezahlt.",
        ]),
        Section("§ 6 Sonstiges", [
            "(1) Mündliche Nebenabreden bestehen nicht.",
            "(2) Sollten einzelne Bestimmungen unwirksam sein, bleibt die Wirksamkeit der übrigen Bestimmungen unberührt.",
            "(3) Gerichtsstand ist der Ort der Mietsache.",
        ]),
    ]


def _joined(items: List[str], empty: str) -> str:
    return ", ".join(items) if items else empty


def _wg_rooms(data: Dict[str, Any]) -> str:
    rooms = []
    if data.get("rooms_total"):
        rooms.append(f"{data['rooms_total']} Zimmer")
    if data.get("rooms_living"):
        rooms.append(f"{data['rooms_living']} Wohnzimmer")
    for flag, label in (
        ("kitchen", "Küche"),
        ("bathroom_toilet", "Bad mit Toilette"),
        ("separate_bathroom", "separates Bad"),
        ("separate_toilet", "separate Toilette"),
        ("hallway", "Diele"),
    ):
        if _truthy(data.get(flag)):
            rooms.append(label)
    if data.get("storage"):
        rooms.append(f"{data['storage']} Abstellkammer(n)")
    if data.get("cellar_number"):
        rooms.append(f"Keller(anteil) Nr.: {data['cellar_number']}")
    if data.get("attic_number"):
        rooms.append(f"Speicher(anteil) Nr.: {data['attic_number']}")
    if _truthy(data.get("balcony_terrace")):
        rooms.append("Balkon/Terrasse")
    if _truthy(data.get("garden")):
        rooms.append("Gartenanteil")
    return _joined(rooms, "[Raumaufteilung]")


def _wg_shared(data: Dict[str, Any]) -> str:
    labels = (
        ("shared_living", "Wohnzimmer"),
        ("shared_kitchen", "Küche"),
        ("shared_bathroom", "Bad mit Toilette"),
        ("shared_hallway", "Diele"),
        ("shared_balcony", "Balkon/Terrasse"),
        ("shared_cellar", "Keller(anteil)"),
        ("shared_garden", "Gartenanteil"),
    )
    return _joined([label for flag, label in labels if _truthy(data.get(flag))], "keine")


def _wg_facilities(data: Dict[str, Any]) -> str:
    items = []
    if _truthy(data.get("shared_washroom")):
        items.append("Waschraum")
    if _truthy(data.get("shared_dryroom")):
        items.append("Trockenraum/-boden")
    if data.get("shared_other"):
        items.append(str(data["shared_other"]))
    return _joined(items, "keine")


def _wg_sections(data: Dict[str, Any]) -> List[Section]:
    subject = ["Der Untervermieter ist alleiniger Mieter der Wohnung in:"] + _property_lines(data)
    subject += [
        f"bestehend aus den folgenden Räumen und Flächen: {_wg_rooms(data)}",
        "Der Untermieter wird in die Wohnung mit aufgenommen und erhält zur alleinigen Nutzung den folgenden "
        f"Raum zu Wohnzwecken zugewiesen: {display_value(data.get('exclusive_room'), '[Zimmerbezeichnung]')}",
        "Der Untermieter ist berechtigt, die folgenden Räume und Flächen gemeinschaftlich mit dem Untervermieter "
        f"zu Wohnzwecken zu benutzen: {_wg_shared(data)}",
        "Der Untermieter ist berechtigt, folgende Gemeinschaftseinrichtungen gemäß den Vorschriften der "
        f"Hausordnung mit zu benutzen: {_wg_facilities(data)}",
    ]
    if data.get("equipment_list"):
        subject.append(
            f"Mitvermietet sind folgende Ausstattungsgegenstände: {data['equipment_list']}; diese sind bei Auszug "
            "vollständig und in ordnungsgemäßem Zustand zurückzulassen."
        )
    subject.append(
        "Dem Untermieter ist bekannt, dass der Untervermieter selbst Mieter ist und er gegenüber dem Eigentümer "
        "der Wohnung keinen Kündigungsschutz genießt."
    )

    term = [f"Das Mietverhältnis beginnt am {format_date(data.get('start_date'))} und"]
    if data.get("contract_type") == "fixed_term":
        term.append(f"endet am {format_date(data.get('end_date'))} ohne dass es hierzu einer Kündigung bedarf.")
    else:
        term.append("läuft auf unbestimmte Zeit; es ist nach den gesetzlichen Vorschriften kündbar.")

    rent = [
        f"Die Miete beträgt monatlich {display_value(data.get('rent_amount'), '[BETRAG]')} EUR inklusive sämtlicher "
        "Betriebskosten; diese umfassen Heizung und Warmwasser, sonstige Betriebskosten und Strom."
    ]
    if str(data.get("telecom_costs") or "").strip():
        rent.append(f"Telekommunikationskosten trägt der Untermieter nach folgender Maßgabe: {data['telecom_costs']}")
    rent.append(
        "Die Miete ist monatlich im Voraus, spätestens am 3. Werktag eines jeden Kalendermonats an den "
        "Untervermieter zu entrichten."
    )

    usage = [
        "(1) Der Untermieter ist verpflichtet, die überlassenen Räume pfleglich zu behandeln und nur zu Wohnzwecken zu nutzen.",
        "(2) Die Aufnahme weiterer Personen bedarf der schriftlichen Zustimmung des Untervermieters.",
        "(3) Haustiere dürfen nur mit ausdrücklicher schriftlicher Erlaubnis des Untervermieters gehalten werden.",
    ]
    if str(data.get("cleaning_plan") or "").strip():
        usage.append(
            "(4) Der Untermieter hat sich an der regelmäßigen Reinigung der gemeinschaftlich benutzten Räume, "
            f"Flächen und Einrichtungen nach Maßgabe des folgenden Reinigungsplans zu beteiligen: {data['cleaning_plan']}"
        )

    sections = [
        Section("§ 1 Vertragsgegenstand", subject),
        Section("§ 2 Mietzeit", term),
        Section("§ 3 Verhältnis zum Vermieter", [
            "(1) Der Untermieter erkennt an, dass zwischen ihm und dem Vermieter kein Mietverhältnis besteht.",
            "(2) Der Untermieter hat keinen Anspruch auf Fortsetzung des Mietverhältnisses über die Beendigung des "
            "Hauptmietverhältnisses hinaus.",
            "(3) Der Untermieter verpflichtet sich, im Falle der Beendigung des Hauptmietverhältnisses die Räume "
            "unverzüglich zu räumen.",
        ]),
        Section("§ 4 Miete", rent),
    ]
    if _positive(data.get("deposit_amount")):
        deposit = [
            f"Der Untermieter hinterlegt eine Kaution in Höhe von {data['deposit_amount']} EUR zur Sicherung aller "
            "Ansprüche aus dem Mietverhältnis."
        ]
        if data.get("deposit_installments") == "yes":
            deposit.append("Die Zahlung kann in drei Monatsraten erfolgen.")
        sections.append(Section("§ 5 Kaution", deposit))
    sections += [
        Section("§ 6 Nutzung und Behandlung der Mieträume", usage),
        Section("§ 7 Duldungspflicht", [
            "Der Untermieter hat Besichtigungen, Reparaturen und Modernisierungsmaßnahmen während der üblichen "
            "Geschäftszeiten zu dulden, soweit diese vom Vermieter angeordnet oder vom Untervermieter für "
            "erforderlich gehalten werden.",
        ]),
        Section("§ 8 Untervermieterpfandrecht", [
            "Dem Untervermieter steht an den in die Räume eingebrachten Sachen des Untermieters ein Pfandrecht für "
            "alle Forderungen aus dem Mietverhältnis zu.",
        ]),
        Section("§ 9 Anzeigepflicht und Haftung", [
            "(1) Der Untermieter ist verpflichtet, Mängel der Mietsache unverzüglich anzuzeigen.",
            "(2) Der Untermieter haftet für alle Schäden, die durch ihn, seine Familienangehörigen oder Besucher verursacht werden.",
            "(3) Der Untermieter ist verpflichtet, eine angemessene Haftpflichtversicherung abzuschließen.",
        ]),
        Section("§ 10 Beendigung der Mietzeit", [
            "(1) Bei Beendigung des Mietverhältnisses ist der zur alleinigen Nutzung überlassene Raum besenrein und "
            "in ordnungsgemäßem Zustand zu übergeben.",
            "(2) Alle Schlüssel sind vollständig zurückzugeben.",
            "(3) Eine hinterlegte Kaution wird nach ordnungsgemäßer Übergabe und Abrechnung zurückgezahlt.",
        ]),
        Section("§ 11 Meldepflicht", [
            "Der Untermieter ist verpflichtet, sich unverzüglich bei der zuständigen Meldebehörde anzumelden. Der "
            "Untervermieter stellt eine entsprechende Wohnungsgeberbestätigung aus.",
        ]),
        Section("§ 12 Weitere Vertragsbestandteile", [
            "(1) Die Hausordnung ist Bestandteil dieses Vertrages.",
            "(2) Mündliche Nebenabreden bestehen nicht.",
            "(3) Sollten einzelne Bestimmungen unwirksam sein, bleibt die Wirksamkeit der übrigen Bestimmungen unberührt.",
            "(4) Gerichtsstand ist der Ort der Mietsache.",
        ]),
    ]
    return sections


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Layout:
    title: Callable[[Dict[str, Any]], str]
    parties: Callable[[Dict[str, Any]], List[str]]
    sections: Callable[[Dict[str, Any]], List[Section]]
    preview: Callable[[Section, Dict[str, Any]], bool]
    product: Callable[[Dict[str, Any]], str]
    subtitle: Optional[str] = None


def _wg_preview(section: Section, data: Dict[str, Any]) -> bool:
    if section.title.startswith("§ 6 "):
        return bool(str(data.get("cleaning_plan") or "").strip())
    return section.title.startswith(("§ 1 ", "§ 2 ", "§ 4 "))


LAYOUTS: Dict[str, _Layout] = {
    "garage": _Layout(
        title=_garage_title,
        parties=_garage_parties,
        sections=_garage_sections,
        preview=lambda s, d: s.title.startswith(("§ 1 ", "§ 2 ", "§ 3 ")),
        product=lambda d: f"{'Garagen' if d.get('garage_type') == 'garage' else 'Stellplatz'}-Mietvertrag",
    ),
    "untermietvertrag": _Layout(
        title=lambda d: "UNTERMIETVERTRAG",
        parties=_sublet_parties,
        sections=_untermiet_sections,
        preview=lambda s, d: s.title.startswith(("§ 1 ", "§ 2 ", "§ 3 ")),
        product=lambda d: "Untermietvertrag",
    ),
    "wg": _Layout(
        title=lambda d: "UNTERMIETVERTRAG",
        subtitle="(WG-Zimmer)",
        parties=_sublet_parties,
        sections=_wg_sections,
        preview=_wg_preview,
        product=lambda d: "WG-Untermietvertrag",
    ),
}


def price_label(product: str, quote: PriceQuote) -> str:
    label = f"Nur {format_price(quote.total)} für Ihren rechtssicheren {product}"
    for line in quote.addon_breakdown:
        label += f" + {line.name}"
    return label


def render_full_contract(contract_type: str, form_data: Optional[Dict[str, Any]]) -> ContractDocument:
    layout = LAYOUTS[contract_type]
    data = form_data or {}
    return ContractDocument(
        contract_type=contract_type,
        title=layout.title(data),
        subtitle=layout.subtitle,
        parties=layout.parties(data),
        sections=layout.sections(data),
    )


def render_preview(contract_type: str, form_data: Optional[Dict[str, Any]], quote: PriceQuote) -> ContractDocument:
    """`quote` comes from the pricing engine; the preview never computes prices itself."""
    layout = LAYOUTS[contract_type]
    data = form_data or {}
    doc = render_full_contract(contract_type, data)

    shown = [s for s in doc.sections if layout.preview(s, data)]
    hidden = [s.title for s in doc.sections if not layout.preview(s, data)]
    doc.sections = shown
    doc.locked = LockedNotice(
        headline=LOCKED_HEADLINE,
        sections=hidden + ["Unterschriftenfelder"],
        price_label=price_label(layout.product(data), quote),
    )
    return doc
