"""
Configuration loader for contract types and base prices
"""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class UnknownContractTypeError(ValueError):
    def __init__(self, contract_type: str) -> None:
        super().__init__(f"Unknown contract type: {contract_type}")
        self.contract_type = contract_type


class ContractTypeConfig(BaseModel):
    """One sellable contract type"""

    display_name: str
    base_price: Decimal = Field(ge=0)
    aliases: List[str] = Field(default_factory=list)
    preview_price_label: Optional[str] = None


class PricingConfig(BaseModel):
    """Complete pricing configuration"""

    currency: str = "EUR"
    currency_symbol: str = "€"
    contract_types: Dict[str, ContractTypeConfig]

    @field_validator("contract_types")
    @classmethod
    def _not_empty(cls, value: Dict[str, ContractTypeConfig]) -> Dict[str, ContractTypeConfig]:
        if not value:
            raise ValueError("at least one contract type is required")
        return value

    def resolve_contract_type(self, name: str) -> str:
        """Map a canonical name or a legacy alias to the canonical contract type."""
        key = (name or "").strip().lower()
        if key in self.contract_types:
            return key
        for canonical, cfg in self.contract_types.items():
            if key in cfg.aliases:
                return canonical
        raise UnknownContractTypeError(name)

    def get(self, name: str) -> ContractTypeConfig:
        return self.contract_types[self.resolve_contract_type(name)]

    def base_price(self, name: str) -> Decimal:
        return self.get(name).base_price


def load_pricing_config(config_path: Optional[Path] = None) -> PricingConfig:
    """
    Load and validate pricing configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/pricing.yml

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "pricing.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = PricingConfig(**config_data)
        logger.info("Loaded pricing config from %s", config_path)
        return config
    except ValidationError as e:
        logger.error("Pricing config validation failed: %s", e)
        raise


@lru_cache(maxsize=1)
def get_pricing_config() -> PricingConfig:
    return load_pricing_config()


def resolve_contract_type(name: str) -> str:
    return get_pricing_config().resolve_contract_type(name)
