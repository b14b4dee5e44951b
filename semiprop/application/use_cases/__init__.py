"""Application use cases."""

from semiprop.application.use_cases.issue_custodian_slip import (
    IssueCustodianSlipUseCase,
    IssueSlipResult,
)
from semiprop.application.use_cases.register_item import (
    RegisterItemResult,
    RegisterItemUseCase,
)

__all__ = [
    "RegisterItemUseCase",
    "RegisterItemResult",
    "IssueCustodianSlipUseCase",
    "IssueSlipResult",
]
