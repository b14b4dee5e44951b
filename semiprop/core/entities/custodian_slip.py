"""Inventory custodian slip (ICS) entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class SlipStatus(str, Enum):
    """Custodian slip document status."""

    DRAFT = "Draft"
    ISSUED = "Issued"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CustodianSlipItem(BaseModel):
    """Line on a custodian slip."""

    id: str | None = None
    slip_id: str | None = None
    inventory_item_id: str | None = None
    property_card_entry_id: str | None = None
    property_number: str
    description: str = ""
    quantity: int = 1
    unit_cost: float = 0.0
    total_cost: float = 0.0
    date_issued: date | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class CustodianSlip(BaseModel):
    """Issuance document assigning items to a custodian."""

    id: str | None = None
    slip_number: str
    custodian_name: str
    designation: str = ""
    office: str = ""
    date_issued: date
    issued_by: str = ""
    received_by: str = ""
    slip_status: SlipStatus = SlipStatus.ISSUED
    items: list[CustodianSlipItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
