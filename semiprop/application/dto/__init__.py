"""Data transfer objects for use case inputs and outputs."""

from semiprop.application.dto.requests import (
    IssueSlipRequest,
    RegisterItemRequest,
    SlipLineRequest,
)
from semiprop.application.dto.responses import (
    CascadeReportResponse,
    DeleteCheckResponse,
    TransferCompletionResponse,
    TransferResponse,
)

__all__ = [
    # Requests
    "RegisterItemRequest",
    "IssueSlipRequest",
    "SlipLineRequest",
    # Responses
    "TransferResponse",
    "TransferCompletionResponse",
    "DeleteCheckResponse",
    "CascadeReportResponse",
]
