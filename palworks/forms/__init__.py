from .validation import FormValidationError, validate_contract_form

__all__ = ["FormValidationError", "validate_contract_form"]
