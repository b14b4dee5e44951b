"""
Core business logic services.

Layer-pure services that depend only on:
- semiprop/core/entities/*
- semiprop/core/interfaces/*
- semiprop/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.cleanup_service import (
    Blocker,
    CascadeReport,
    CleanupService,
    DeleteCheck,
    EntityType,
)
from semiprop.core.services.custody_registry import CustodyRegistry, check_assignment_invariant
from semiprop.core.services.item_resolver import ItemResolver
from semiprop.core.services.ledger_engine import (
    LedgerEngine,
    carrying_cost,
    next_balance,
    walk_balances,
)
from semiprop.core.services.numbering import DocumentNumberAllocator
from semiprop.core.services.transfer_workflow import TransferCompletion, TransferWorkflow

__all__ = [
    # Resolution
    "ItemResolver",
    # Custody
    "CustodyRegistry",
    "check_assignment_invariant",
    # Ledger
    "LedgerEngine",
    "carrying_cost",
    "next_balance",
    "walk_balances",
    # Transfers
    "TransferWorkflow",
    "TransferCompletion",
    "DocumentNumberAllocator",
    # Cleanup
    "CleanupService",
    "EntityType",
    "Blocker",
    "DeleteCheck",
    "CascadeReport",
    # Audit
    "ChangeRecorder",
]
