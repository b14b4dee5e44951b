"""
Service wiring.

Builds every store and service around one explicit connection pool.
Nothing here is global: callers own the pool and the returned bundle.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass

from semiprop.application.use_cases import IssueCustodianSlipUseCase, RegisterItemUseCase
from semiprop.config import Settings, get_settings
from semiprop.core.exceptions import SlipNumberAllocationError, TransferNumberAllocationError
from semiprop.core.interfaces import IChangeNotifier
from semiprop.core.services import (
    ChangeRecorder,
    CleanupService,
    CustodyRegistry,
    DocumentNumberAllocator,
    ItemResolver,
    LedgerEngine,
    TransferWorkflow,
)
from semiprop.infrastructure.notifications import LoggingChangeNotifier
from semiprop.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteAuditStore,
    SQLiteCustodianSlipStore,
    SQLiteInventoryStore,
    SQLitePropertyCardStore,
    SQLiteTransferStore,
    validate_mappings,
)


@dataclass
class CustodyServices:
    """Everything needed to run the custody lifecycle against one database."""

    pool: ConnectionPool
    inventory_store: SQLiteInventoryStore
    card_store: SQLitePropertyCardStore
    slip_store: SQLiteCustodianSlipStore
    transfer_store: SQLiteTransferStore
    audit_store: SQLiteAuditStore
    resolver: ItemResolver
    recorder: ChangeRecorder
    ledger: LedgerEngine
    registry: CustodyRegistry
    workflow: TransferWorkflow
    cleanup: CleanupService
    register_item: RegisterItemUseCase
    issue_slip: IssueCustodianSlipUseCase


def build_custody_services(
    pool: ConnectionPool,
    settings: Settings | None = None,
    notifier: IChangeNotifier | None = None,
) -> CustodyServices:
    """
    Wire stores, services and use cases around a pool.

    Args:
        pool: Connection pool for the target database
        settings: Optional settings override (numbering, intake defaults)
        notifier: Change notifier; defaults to structured log events

    Returns:
        Configured CustodyServices bundle
    """
    settings = settings or get_settings()
    custody = settings.custody
    validate_mappings()

    inventory_store = SQLiteInventoryStore(pool)
    card_store = SQLitePropertyCardStore(pool)
    slip_store = SQLiteCustodianSlipStore(pool)
    transfer_store = SQLiteTransferStore(pool)
    audit_store = SQLiteAuditStore(pool)

    recorder = ChangeRecorder(pool, audit_store, notifier or LoggingChangeNotifier())
    resolver = ItemResolver(inventory_store, card_store)
    ledger = LedgerEngine(card_store, pool)
    registry = CustodyRegistry(inventory_store, transfer_store, pool, resolver, recorder)

    transfer_numbers = DocumentNumberAllocator(
        custody.transfer_number_prefix,
        transfer_store.list_transfer_numbers,
        width=custody.sequence_width,
        max_attempts=custody.max_number_attempts,
        exhausted_error=TransferNumberAllocationError,
    )
    slip_numbers = DocumentNumberAllocator(
        custody.slip_number_prefix,
        slip_store.list_slip_numbers,
        width=custody.sequence_width,
        max_attempts=custody.max_number_attempts,
        exhausted_error=SlipNumberAllocationError,
    )

    workflow = TransferWorkflow(
        transfer_store,
        slip_store,
        registry,
        ledger,
        pool,
        resolver,
        transfer_numbers=transfer_numbers,
        slip_numbers=slip_numbers,
        recorder=recorder,
    )
    cleanup = CleanupService(
        inventory_store,
        card_store,
        slip_store,
        transfer_store,
        ledger,
        workflow,
        pool,
        resolver,
        recorder,
    )

    return CustodyServices(
        pool=pool,
        inventory_store=inventory_store,
        card_store=card_store,
        slip_store=slip_store,
        transfer_store=transfer_store,
        audit_store=audit_store,
        resolver=resolver,
        recorder=recorder,
        ledger=ledger,
        registry=registry,
        workflow=workflow,
        cleanup=cleanup,
        register_item=RegisterItemUseCase(
            inventory_store, card_store, ledger, pool, custody, recorder
        ),
        issue_slip=IssueCustodianSlipUseCase(
            slip_store, registry, resolver, slip_numbers, pool, recorder
        ),
    )
