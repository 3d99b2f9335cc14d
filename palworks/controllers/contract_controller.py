"""Controller for creating and repricing contracts.

Totals are always computed here from the catalogue service and the pricing
engine. A total sent by the client is never stored.
"""
from typing import Any, Dict, List, Optional
import logging

from palworks.forms.validation import validate_contract_form
from palworks.pricing.engine import compute_total, legacy_flags, selection_from_legacy
from palworks.pricing.models import PriceQuote

logger = logging.getLogger(__name__)


class ContractNotEditableError(Exception):
    def __init__(self, contract_id: str, status: str) -> None:
        super().__init__(f"Contract {contract_id} has status '{status}' and can no longer be changed")
        self.contract_id = contract_id
        self.status = status


class ContractController:
    def __init__(self, db, catalogue_service, config):
        self.db = db
        self.catalogue_service = catalogue_service
        self.config = config

    async def quote(self, contract_type: str, selected_addons: List[str]) -> PriceQuote:
        ct = self.config.resolve_contract_type(contract_type)
        snapshot = await self.catalogue_service.get(ct)
        return compute_total(
            self.config.base_price(ct), snapshot.addons, selected_addons, currency=self.config.currency
        )

    async def create_contract(
        self,
        contract_type: str,
        form_data: Dict[str, Any],
        selected_addons: Optional[List[str]] = None,
        customer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        ct = self.config.resolve_contract_type(contract_type)
        form_data = dict(form_data or {})
        validate_contract_form(ct, form_data)

        if selected_addons is None:
            selected_addons = list(form_data.get("selected_addons") or [])
        selection = selection_from_legacy(selected_addons, form_data)
        quote = await self.quote(ct, selection)

        # Stored form data carries the legacy flags as a view of the selection.
        form_data["selected_addons"] = quote.addon_keys
        form_data.update(legacy_flags(quote.addon_keys))

        email = customer_email or form_data.get("customer_email") or form_data.get("billing_email")
        contract = self.db.create_contract(
            contract_type=ct,
            form_data=form_data,
            selected_addons=quote.addon_keys,
            addon_prices=quote.addon_prices(),
            base_price=quote.base_price,
            total_amount=quote.total,
            customer_email=email,
        )
        logger.info("[Pricing] Contract %s created (%s, total %s)", contract.id, ct, quote.total)
        return self._to_dict(contract)

    def get_contract(self, contract_id: str) -> Optional[Dict[str, Any]]:
        contract = self.db.get_contract(contract_id)
        return self._to_dict(contract) if contract else None

    def list_contracts(self, customer_email: str) -> List[Dict[str, Any]]:
        return [self._to_dict(c) for c in self.db.list_contracts_by_email(customer_email)]

    async def update_addons(self, contract_id: str, selected_addons: List[str]) -> Optional[Dict[str, Any]]:
        contract = self.db.get_contract(contract_id)
        if not contract:
            return None
        if contract.status != "draft":
            raise ContractNotEditableError(contract_id, contract.status)
        if contract.payment_status == "processing":
            raise ContractNotEditableError(contract_id, "payment processing")

        quote = await self.quote(contract.contract_type, selection_from_legacy(selected_addons, {}))
        form_data = dict(contract.form_data or {})
        form_data["selected_addons"] = quote.addon_keys
        form_data.update(legacy_flags(quote.addon_keys))

        contract = self.db.update_contract(
            contract_id,
            {
                "selected_addons": quote.addon_keys,
                "addon_prices": quote.addon_prices(),
                "total_amount": quote.total,
                "form_data": form_data,
                # A changed amount invalidates an intent created for the old one.
                "payment_intent_id": None,
            },
        )
        return self._to_dict(contract) if contract else None

    @staticmethod
    def _to_dict(contract) -> Dict[str, Any]:
        selected = list(contract.selected_addons or [])
        return {
            "id": str(contract.id),
            "contract_type": contract.contract_type,
            "form_data": contract.form_data,
            "selected_addons": selected,
            "addon_prices": contract.addon_prices,
            "base_price": float(contract.base_price),
            "total_amount": float(contract.total_amount),
            "customer_email": contract.customer_email,
            "status": contract.status,
            "payment_status": contract.payment_status,
            "payment_intent_id": contract.payment_intent_id,
            "download_unlocked": contract.status == "paid",
            **legacy_flags(selected),
        }
