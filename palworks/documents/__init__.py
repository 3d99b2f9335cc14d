from .preview import ContractDocument, render_full_contract, render_preview

__all__ = ["ContractDocument", "render_full_contract", "render_preview"]
