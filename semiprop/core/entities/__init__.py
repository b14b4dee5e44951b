"""Core domain entities."""

from semiprop.core.entities.audit import AuditLogEntry, ChangeAction, ChangeEvent
from semiprop.core.entities.custodian_slip import (
    CustodianSlip,
    CustodianSlipItem,
    SlipStatus,
)
from semiprop.core.entities.inventory import (
    AssignmentStatus,
    InventoryItem,
    ItemCondition,
    ItemStatus,
)
from semiprop.core.entities.property_card import (
    LedgerEntryInput,
    PropertyCard,
    SPCEntry,
)
from semiprop.core.entities.transfer import (
    OPEN_STATUSES,
    Transfer,
    TransferDraft,
    TransferHistoryEntry,
    TransferItem,
    TransferStatistics,
    TransferStatus,
    TransferType,
)

__all__ = [
    # Inventory entities
    "InventoryItem",
    "ItemCondition",
    "ItemStatus",
    "AssignmentStatus",
    # Property card entities
    "PropertyCard",
    "SPCEntry",
    "LedgerEntryInput",
    # Custodian slip entities
    "CustodianSlip",
    "CustodianSlipItem",
    "SlipStatus",
    # Transfer entities
    "Transfer",
    "TransferDraft",
    "TransferItem",
    "TransferStatus",
    "TransferType",
    "TransferHistoryEntry",
    "TransferStatistics",
    "OPEN_STATUSES",
    # Audit entities
    "AuditLogEntry",
    "ChangeAction",
    "ChangeEvent",
]
