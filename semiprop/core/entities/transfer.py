"""Inventory transfer report (ITR) entities and status machine."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class TransferStatus(str, Enum):
    """Transfer workflow states."""

    DRAFT = "Draft"
    ISSUED = "Issued"
    COMPLETED = "Completed"
    REJECTED = "Rejected"

    @classmethod
    def parse(cls, value: str | None) -> "TransferStatus":
        """Read a stored status, accepting legacy values and blanks."""
        if not value:
            return cls.DRAFT
        return LEGACY_STATUSES.get(value) or cls(value)

    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.REJECTED)


LEGACY_STATUSES: dict[str, TransferStatus] = {
    "Pending": TransferStatus.DRAFT,
    "In Transit": TransferStatus.ISSUED,
}

# Allowed forward moves; nothing leaves a terminal state.
TRANSITIONS: dict[TransferStatus, frozenset[TransferStatus]] = {
    TransferStatus.DRAFT: frozenset({TransferStatus.ISSUED, TransferStatus.REJECTED}),
    TransferStatus.ISSUED: frozenset({TransferStatus.COMPLETED, TransferStatus.REJECTED}),
    TransferStatus.COMPLETED: frozenset(),
    TransferStatus.REJECTED: frozenset(),
}

OPEN_STATUSES = (TransferStatus.DRAFT, TransferStatus.ISSUED)


class TransferType(str, Enum):
    """Reason category printed on the ITR."""

    DONATION = "Donation"
    REASSIGNMENT = "Reassignment"
    RELOCATE = "Relocate"
    OTHERS = "Others"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransferItem(BaseModel):
    """An item moving on a transfer."""

    id: str | None = None
    transfer_id: str | None = None
    inventory_item_id: str | None = None
    custodian_slip_item_id: str | None = None  # ICS line that first issued it
    property_number: str
    description: str = ""
    quantity: int = 1
    condition: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class Transfer(BaseModel):
    """Request to move items from one custodian to another."""

    id: str | None = None
    transfer_number: str
    entity_name: str = ""
    fund_cluster: str = ""
    from_custodian: str
    from_position: str = ""
    to_custodian: str
    to_position: str = ""
    transfer_type: TransferType = TransferType.REASSIGNMENT
    status: TransferStatus = TransferStatus.DRAFT
    requested_by: str = ""
    approved_by: str | None = None
    date_requested: date
    date_approved: date | None = None
    date_completed: date | None = None
    reason: str = ""
    remarks: str | None = None
    items: list[TransferItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def can_move_to(self, target: TransferStatus) -> bool:
        return target in TRANSITIONS[self.status]

    @property
    def is_deletable(self) -> bool:
        return self.status == TransferStatus.DRAFT

    @property
    def receiving_officer(self) -> str:
        """Office/officer text written on the ledger for the receiver."""
        if self.to_position:
            return f"{self.to_custodian} ({self.to_position})"
        return self.to_custodian


class TransferDraft(BaseModel):
    """Caller input for creating a transfer."""

    transfer_number: str | None = None
    entity_name: str = ""
    fund_cluster: str = ""
    from_custodian: str = ""
    from_position: str = ""
    to_custodian: str = ""
    to_position: str = ""
    transfer_type: TransferType = TransferType.REASSIGNMENT
    date_requested: date | None = None
    reason: str = ""
    remarks: str | None = None
    items: list[TransferItem] = Field(default_factory=list)


class TransferHistoryEntry(BaseModel):
    """One transition recorded against a transfer."""

    id: int | None = None
    transfer_id: str
    status: TransferStatus
    action: str
    details: str | None = None
    actor: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class TransferStatistics(BaseModel):
    """Counts of transfers by status and by type."""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
