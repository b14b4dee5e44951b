"""SQLite storage implementations."""

from semiprop.infrastructure.storage.sqlite.audit_store import SQLiteAuditStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool, create_pool
from semiprop.infrastructure.storage.sqlite.custodian_slip_store import (
    SQLiteCustodianSlipStore,
)
from semiprop.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from semiprop.infrastructure.storage.sqlite.mapping import validate_mappings
from semiprop.infrastructure.storage.sqlite.property_card_store import (
    SQLitePropertyCardStore,
)
from semiprop.infrastructure.storage.sqlite.transfer_store import SQLiteTransferStore

__all__ = [
    # Connection
    "ConnectionPool",
    "create_pool",
    "validate_mappings",
    # Store classes
    "SQLiteInventoryStore",
    "SQLitePropertyCardStore",
    "SQLiteCustodianSlipStore",
    "SQLiteTransferStore",
    "SQLiteAuditStore",
]
