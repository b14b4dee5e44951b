"""Inventory item entity and custody state."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ItemCondition(str, Enum):
    """Physical condition of an item."""

    SERVICEABLE = "Serviceable"
    UNSERVICEABLE = "Unserviceable"
    FOR_REPAIR = "For Repair"
    LOST = "Lost"
    STOLEN = "Stolen"
    DAMAGED = "Damaged"
    DESTROYED = "Destroyed"


class ItemStatus(str, Enum):
    """Lifecycle status of an item."""

    ACTIVE = "Active"
    TRANSFERRED = "Transferred"
    DISPOSED = "Disposed"
    MISSING = "Missing"


class AssignmentStatus(str, Enum):
    """Whether an item currently has a custodian."""

    AVAILABLE = "Available"
    ASSIGNED = "Assigned"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InventoryItem(BaseModel):
    """
    A physical semi-expendable asset.

    ``assignment_status`` may be ``None`` for legacy rows that never had the
    flag written; such rows are treated as available when no custodian is set.
    """

    id: str | None = None
    property_number: str
    description: str = ""
    condition: ItemCondition = ItemCondition.SERVICEABLE
    status: ItemStatus = ItemStatus.ACTIVE
    unit_cost: float = 0.0
    quantity: int = 1
    total_cost: float = 0.0
    assignment_status: AssignmentStatus | None = AssignmentStatus.AVAILABLE
    custodian: str | None = None
    custodian_position: str | None = None
    assigned_date: date | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _derive_total_cost(self) -> "InventoryItem":
        self.total_cost = round(self.unit_cost * self.quantity, 2)
        return self

    @property
    def has_custodian(self) -> bool:
        return bool(self.custodian and self.custodian.strip())

    @property
    def is_under_custody(self) -> bool:
        """True if the item is flagged Assigned or names a custodian."""
        return self.assignment_status == AssignmentStatus.ASSIGNED or self.has_custodian

    @property
    def is_available(self) -> bool:
        """Available for a new assignment (computed, never stored)."""
        return (
            self.condition == ItemCondition.SERVICEABLE
            and self.status == ItemStatus.ACTIVE
            and not self.is_under_custody
        )

    def recompute_total(self) -> None:
        """Refresh total_cost after unit_cost or quantity changed."""
        self.total_cost = round(self.unit_cost * self.quantity, 2)
