"""
Utility modules
"""
from .config_loader import (
    ContractTypeConfig,
    PricingConfig,
    UnknownContractTypeError,
    get_pricing_config,
    load_pricing_config,
    resolve_contract_type,
)

__all__ = [
    'ContractTypeConfig',
    'PricingConfig',
    'UnknownContractTypeError',
    'get_pricing_config',
    'load_pricing_config',
    'resolve_contract_type',
]
