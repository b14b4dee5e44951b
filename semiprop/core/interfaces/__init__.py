"""Core interfaces (ports) for dependency injection."""

from semiprop.core.interfaces.audit_store import IAuditStore
from semiprop.core.interfaces.custodian_slip_store import ICustodianSlipStore
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.core.interfaces.notifier import IChangeNotifier
from semiprop.core.interfaces.property_card_store import IPropertyCardStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.interfaces.transfer_store import ITransferStore

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "IPropertyCardStore",
    "ICustodianSlipStore",
    "ITransferStore",
    "IAuditStore",
    # Infrastructure interfaces
    "ITransactionManager",
    "IChangeNotifier",
]
