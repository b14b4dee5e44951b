"""Response DTOs for use cases and the management CLI."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from semiprop.core.entities.transfer import Transfer
from semiprop.core.services.cleanup_service import CascadeReport, DeleteCheck
from semiprop.core.services.transfer_workflow import TransferCompletion


class TransferResponse(BaseModel):
    """Transfer header summary."""

    id: str
    transfer_number: str
    status: str
    from_custodian: str
    to_custodian: str
    transfer_type: str
    date_requested: date
    date_approved: date | None = None
    date_completed: date | None = None
    items: int = Field(default=0, description="Number of items on the transfer")

    @classmethod
    def from_entity(cls, transfer: Transfer) -> "TransferResponse":
        return cls(
            id=transfer.id,
            transfer_number=transfer.transfer_number,
            status=transfer.status.value,
            from_custodian=transfer.from_custodian,
            to_custodian=transfer.to_custodian,
            transfer_type=transfer.transfer_type.value,
            date_requested=transfer.date_requested,
            date_approved=transfer.date_approved,
            date_completed=transfer.date_completed,
            items=len(transfer.items),
        )


class TransferCompletionResponse(BaseModel):
    """Result of completing a transfer."""

    transfer: TransferResponse
    reassigned: int = Field(..., description="Items moved to the receiving custodian")
    ledger_entries: int = Field(..., description="Issue entries posted")
    slip_number: str | None = Field(default=None, description="Receiver's custodian slip")
    already_completed: bool = False
    message: str

    @classmethod
    def from_result(cls, result: TransferCompletion) -> "TransferCompletionResponse":
        return cls(
            transfer=TransferResponse.from_entity(result.transfer),
            reassigned=result.reassigned,
            ledger_entries=result.ledger_entries,
            slip_number=result.slip.slip_number if result.slip else None,
            already_completed=result.already_completed,
            message=result.message,
        )


class DeleteCheckResponse(BaseModel):
    """Whether an entity can be deleted, and what blocks it."""

    entity_type: str
    entity_id: str
    can_delete: bool
    custodian: str | None = None
    blockers: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_check(cls, check: DeleteCheck) -> "DeleteCheckResponse":
        return cls(
            entity_type=check.entity_type.value,
            entity_id=check.entity_id,
            can_delete=check.can_delete,
            custodian=check.custodian,
            blockers=[b.to_dict() for b in check.blockers],
        )


class CascadeReportResponse(BaseModel):
    """Rows removed by a delete."""

    entity_type: str
    entity_id: str
    deleted: dict[str, int] = Field(default_factory=dict)
    detached: dict[str, int] = Field(default_factory=dict)
    retried: bool = False

    @classmethod
    def from_report(cls, report: CascadeReport) -> "CascadeReportResponse":
        return cls(
            entity_type=report.entity_type.value,
            entity_id=report.entity_id,
            deleted=report.deleted,
            detached=report.detached,
            retried=report.retried,
        )
