from .contract_controller import ContractController, ContractNotEditableError

__all__ = ["ContractController", "ContractNotEditableError"]
