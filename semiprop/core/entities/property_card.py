"""Property card (semi-expendable property ledger) entities."""

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PropertyCard(BaseModel):
    """Ledger header for one inventory item, used on printed cards."""

    id: str | None = None
    inventory_item_id: str | None = None
    property_number: str
    entity_name: str = ""
    fund_cluster: str = ""
    description: str = ""
    date_acquired: date | None = None
    remarks: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SPCEntry(BaseModel):
    """A single row on a property card."""

    id: str | None = None
    property_card_id: str
    line_no: int = 0  # insertion order within the card
    date: date
    reference: str = ""
    receipt_qty: int = 0
    unit_cost: float = 0.0
    total_cost: float = 0.0
    issue_item_no: str = ""
    issue_qty: int = 0
    office_officer: str = ""
    balance_qty: int = 0
    amount: float = 0.0
    remarks: str | None = None
    related_transfer_id: str | None = None
    related_slip_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.date, self.line_no)


class LedgerEntryInput(BaseModel):
    """
    Caller-supplied fields for a new ledger entry.

    ``balance_qty`` and ``amount`` are normally left unset so the engine
    computes them. Imported or historical entries may carry both, in which
    case they are stored as given.
    """

    date: date
    reference: str = ""
    receipt_qty: int = Field(default=0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    issue_item_no: str = ""
    issue_qty: int = Field(default=0, ge=0)
    office_officer: str = ""
    remarks: str | None = None
    related_transfer_id: str | None = None
    related_slip_id: str | None = None
    balance_qty: int | None = None
    amount: float | None = None

    @property
    def is_explicit(self) -> bool:
        return self.balance_qty is not None and self.amount is not None
