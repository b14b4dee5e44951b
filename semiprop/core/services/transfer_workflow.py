"""
Inventory transfer workflow.

Drives an Inventory Transfer Report (ITR) through its states:

    Draft -> Issued -> Completed
      |        |
      +--------+----> Rejected

Custody and the property card ledger are only touched by ``complete``;
creating, issuing or rejecting a transfer changes nothing but the transfer.
"""

from dataclasses import dataclass
from datetime import date

from semiprop.config import get_logger
from semiprop.core.entities.audit import ChangeAction
from semiprop.core.entities.custodian_slip import CustodianSlip, CustodianSlipItem, SlipStatus
from semiprop.core.entities.property_card import LedgerEntryInput
from semiprop.core.entities.transfer import (
    Transfer,
    TransferDraft,
    TransferHistoryEntry,
    TransferItem,
    TransferStatistics,
    TransferStatus,
)
from semiprop.core.exceptions import (
    DivergentCompletionError,
    DuplicateSlipNumberError,
    DuplicateTransferNumberError,
    InvalidTransitionError,
    InventoryItemNotFoundError,
    ReferentialBlockError,
    SlipNumberAllocationError,
    TransferNotFoundError,
    TransferNumberAllocationError,
    TransferValidationError,
)
from semiprop.core.interfaces.custodian_slip_store import ICustodianSlipStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.interfaces.transfer_store import ITransferStore
from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.custody_registry import CustodyRegistry, same_custodian
from semiprop.core.services.item_resolver import ItemResolver
from semiprop.core.services.ledger_engine import LedgerEngine
from semiprop.core.services.numbering import DocumentNumberAllocator

logger = get_logger(__name__)


@dataclass
class TransferCompletion:
    """Outcome of completing a transfer."""

    transfer: Transfer
    reassigned: int
    ledger_entries: int
    slip: CustodianSlip | None = None
    already_completed: bool = False

    @property
    def message(self) -> str:
        if self.already_completed:
            return f"Transfer {self.transfer.transfer_number} was already completed"
        return (
            f"Transfer {self.transfer.transfer_number} completed: "
            f"{self.reassigned} item(s) reassigned to {self.transfer.to_custodian}"
        )


class TransferWorkflow:
    """State machine and side effects for inventory transfers."""

    def __init__(
        self,
        transfer_store: ITransferStore,
        slip_store: ICustodianSlipStore,
        registry: CustodyRegistry,
        ledger: LedgerEngine,
        transactions: ITransactionManager,
        resolver: ItemResolver,
        transfer_numbers: DocumentNumberAllocator | None = None,
        slip_numbers: DocumentNumberAllocator | None = None,
        recorder: ChangeRecorder | None = None,
    ) -> None:
        self._transfers = transfer_store
        self._slips = slip_store
        self._registry = registry
        self._ledger = ledger
        self._tx = transactions
        self._resolver = resolver
        self._transfer_numbers = transfer_numbers or DocumentNumberAllocator(
            "ITR",
            transfer_store.list_transfer_numbers,
            exhausted_error=TransferNumberAllocationError,
        )
        self._slip_numbers = slip_numbers or DocumentNumberAllocator(
            "ICS",
            slip_store.list_slip_numbers,
            exhausted_error=SlipNumberAllocationError,
        )
        self._recorder = recorder or ChangeRecorder(transactions)

    # Queries

    async def get(self, transfer_id: str) -> Transfer:
        transfer = await self._transfers.get_transfer(transfer_id)
        if transfer is None:
            transfer = await self._transfers.get_by_number(transfer_id)
        if transfer is None:
            raise TransferNotFoundError(transfer_id)
        return transfer

    async def history(self, transfer_id: str) -> list[TransferHistoryEntry]:
        transfer = await self.get(transfer_id)
        return await self._transfers.list_history(transfer.id)

    async def statistics(self) -> TransferStatistics:
        return await self._transfers.statistics()

    # Create

    async def _validate(self, draft: TransferDraft) -> tuple[dict[str, str], list[TransferItem]]:
        errors: dict[str, str] = {}

        if not draft.entity_name.strip():
            errors["entity_name"] = "entity name is required"
        if not draft.fund_cluster.strip():
            errors["fund_cluster"] = "fund cluster is required"
        if not draft.reason.strip():
            errors["reason"] = "reason for transfer is required"

        source = draft.from_custodian.strip()
        target = draft.to_custodian.strip()
        if not source:
            errors["from_custodian"] = "transferring custodian is required"
        if not target:
            errors["to_custodian"] = "receiving custodian is required"
        elif source and same_custodian(source, target):
            errors["to_custodian"] = "receiving custodian must differ from transferring custodian"

        if draft.transfer_number:
            if await self._transfers.get_by_number(draft.transfer_number) is not None:
                errors["transfer_number"] = f"{draft.transfer_number} already exists"

        if not draft.items:
            errors["items"] = "at least one item is required"

        items: list[TransferItem] = []
        seen: set[str] = set()
        for index, requested in enumerate(draft.items):
            key = f"items[{index}]"
            if requested.quantity < 1:
                errors[key] = "quantity must be at least 1"
                continue
            item = await self._resolver.resolve_transfer_item(requested)
            if item is None:
                errors[key] = f"item {requested.property_number or requested.inventory_item_id} not found"
                continue
            if item.id in seen:
                errors[key] = f"item {item.property_number} is listed more than once"
                continue
            seen.add(item.id)
            if source and not same_custodian(item.custodian, source):
                holder = item.custodian or "no one"
                errors[key] = (
                    f"item {item.property_number} is held by {holder}, not {source}"
                )
                continue
            if requested.quantity > item.quantity:
                errors[key] = (
                    f"item {item.property_number} has {item.quantity} on hand, "
                    f"{requested.quantity} requested"
                )
                continue

            slip_lines = await self._slips.list_items_for_item(item.id, item.property_number)
            items.append(
                TransferItem(
                    inventory_item_id=item.id,
                    custodian_slip_item_id=(
                        requested.custodian_slip_item_id
                        or (slip_lines[-1].id if slip_lines else None)
                    ),
                    property_number=item.property_number,
                    description=requested.description or item.description,
                    quantity=requested.quantity,
                    condition=requested.condition or item.condition.value,
                )
            )

        return errors, items

    async def create(self, draft: TransferDraft, actor: str = "") -> Transfer:
        """
        Validate and store a new Draft transfer.

        All validation problems are reported together. Without a supplied
        transfer number one is generated, retrying on collisions.

        Raises:
            TransferValidationError: any field or item is invalid
            TransferNumberAllocationError: no free number after bounded retries
        """
        errors, items = await self._validate(draft)
        if errors:
            logger.info("transfer_validation_failed", errors=errors)
            raise TransferValidationError(errors)

        requested = draft.date_requested or date.today()

        async def insert(number: str) -> Transfer:
            transfer = Transfer(
                transfer_number=number,
                entity_name=draft.entity_name.strip(),
                fund_cluster=draft.fund_cluster.strip(),
                from_custodian=draft.from_custodian.strip(),
                from_position=draft.from_position.strip(),
                to_custodian=draft.to_custodian.strip(),
                to_position=draft.to_position.strip(),
                transfer_type=draft.transfer_type,
                status=TransferStatus.DRAFT,
                requested_by=actor,
                date_requested=requested,
                reason=draft.reason.strip(),
                remarks=draft.remarks,
                items=[item.model_copy() for item in items],
            )
            async with self._tx.transaction():
                saved = await self._transfers.create_transfer(transfer)
                await self._add_history(saved, "created", actor, f"{len(items)} item(s)")
                await self._recorder.record(
                    actor,
                    ChangeAction.CREATE,
                    "property_transfers",
                    saved.id,
                    transfer_number=saved.transfer_number,
                )
            return saved

        if draft.transfer_number:
            saved = await insert(draft.transfer_number)
            self._transfer_numbers.remember(saved.transfer_number)
        else:
            saved = await self._transfer_numbers.insert_with_number(
                requested.year, insert, DuplicateTransferNumberError
            )

        logger.info(
            "transfer_drafted",
            transfer_id=saved.id,
            transfer_number=saved.transfer_number,
            from_custodian=saved.from_custodian,
            to_custodian=saved.to_custodian,
            items=len(saved.items),
        )
        return saved

    # Transitions

    def _ensure_transition(self, transfer: Transfer, target: TransferStatus) -> None:
        if not transfer.can_move_to(target):
            logger.error(
                "invalid_transfer_transition",
                transfer_id=transfer.id,
                transfer_number=transfer.transfer_number,
                current=transfer.status.value,
                target=target.value,
            )
            raise InvalidTransitionError(
                transfer.transfer_number, transfer.status.value, target.value
            )

    async def _add_history(
        self, transfer: Transfer, action: str, actor: str, details: str | None = None
    ) -> None:
        await self._transfers.add_history(
            TransferHistoryEntry(
                transfer_id=transfer.id,
                status=transfer.status,
                action=action,
                details=details,
                actor=actor,
            )
        )

    async def issue(
        self, transfer_id: str, actor: str = "", approved_by: str | None = None
    ) -> Transfer:
        """Draft -> Issued. Custody stays with the transferring custodian."""
        async with self._tx.transaction():
            transfer = await self.get(transfer_id)
            self._ensure_transition(transfer, TransferStatus.ISSUED)

            transfer.status = TransferStatus.ISSUED
            transfer.date_approved = date.today()
            transfer.approved_by = approved_by or actor or None
            await self._transfers.update_status(transfer)
            await self._add_history(transfer, "issued", actor)
            await self._recorder.record(
                actor, ChangeAction.UPDATE, "property_transfers", transfer.id, status="Issued"
            )

        logger.info(
            "transfer_issued",
            transfer_id=transfer.id,
            transfer_number=transfer.transfer_number,
        )
        return transfer

    async def _missing_ledger_entries(self, transfer: Transfer) -> list[str]:
        missing = []
        for transfer_item in transfer.items:
            item = await self._resolver.resolve_transfer_item(transfer_item)
            if item is None:
                missing.append(transfer_item.property_number)
                continue
            card = await self._resolver.resolve_card(item)
            if card is not None and not await self._ledger.has_entry(
                card.id, transfer.transfer_number, item.property_number
            ):
                missing.append(item.property_number)
        return missing

    async def complete(
        self,
        transfer_id: str,
        actor: str = "",
        completion_date: date | None = None,
    ) -> TransferCompletion:
        """
        Issued -> Completed, moving custody and posting ledger issues.

        Runs as one transaction: every item is reassigned to the receiving
        custodian, an issue entry is posted on its property card (unless one
        for this transfer already exists) and a custodian slip is written
        for the receiver. Any failure leaves the transfer Issued and nothing
        else changed. Completing an already Completed transfer is
        acknowledged without side effects.

        Raises:
            InvalidTransitionError: transfer is not Issued
            CustodyChangedError: an item is no longer held by the transferring custodian
            DivergentCompletionError: a Completed transfer lacks its ledger entries
        """
        when = completion_date or date.today()

        async with self._tx.transaction():
            transfer = await self.get(transfer_id)

            if transfer.status == TransferStatus.COMPLETED:
                missing = await self._missing_ledger_entries(transfer)
                if missing:
                    logger.error(
                        "divergent_completed_transfer",
                        transfer_id=transfer.id,
                        transfer_number=transfer.transfer_number,
                        missing=missing,
                    )
                    raise DivergentCompletionError(transfer.transfer_number, missing)
                logger.info(
                    "transfer_already_completed",
                    transfer_id=transfer.id,
                    transfer_number=transfer.transfer_number,
                )
                return TransferCompletion(
                    transfer=transfer, reassigned=0, ledger_entries=0, already_completed=True
                )

            self._ensure_transition(transfer, TransferStatus.COMPLETED)

            reassigned = 0
            posted = 0
            slip_items: list[CustodianSlipItem] = []
            for transfer_item in transfer.items:
                item = await self._resolver.resolve_transfer_item(transfer_item)
                if item is None:
                    raise InventoryItemNotFoundError(
                        transfer_item.inventory_item_id or transfer_item.property_number
                    )

                item = await self._registry.assign(
                    item.id,
                    transfer.to_custodian,
                    transfer.to_position,
                    when,
                    expected_custodian=transfer.from_custodian,
                    actor=actor,
                )
                reassigned += 1

                entry_id = None
                card = await self._resolver.resolve_card(item)
                if card is None:
                    logger.warning(
                        "transfer_item_without_property_card",
                        transfer_number=transfer.transfer_number,
                        property_number=item.property_number,
                    )
                elif not await self._ledger.has_entry(
                    card.id, transfer.transfer_number, item.property_number
                ):
                    entry = await self._ledger.append_entry(
                        card.id,
                        LedgerEntryInput(
                            date=when,
                            reference=transfer.transfer_number,
                            issue_item_no=item.property_number,
                            issue_qty=item.quantity,
                            office_officer=transfer.receiving_officer,
                            related_transfer_id=transfer.id,
                        ),
                    )
                    entry_id = entry.id
                    posted += 1

                slip_items.append(
                    CustodianSlipItem(
                        inventory_item_id=item.id,
                        property_card_entry_id=entry_id,
                        property_number=item.property_number,
                        description=transfer_item.description or item.description,
                        quantity=item.quantity,
                        unit_cost=item.unit_cost,
                        date_issued=when,
                    )
                )

            slip = await self._issue_receiver_slip(transfer, slip_items, when)

            transfer.status = TransferStatus.COMPLETED
            transfer.date_completed = when
            await self._transfers.update_status(transfer)
            await self._add_history(
                transfer,
                "completed",
                actor,
                f"{reassigned} item(s) reassigned to {transfer.to_custodian}; "
                f"custodian slip {slip.slip_number}",
            )
            await self._recorder.record(
                actor,
                ChangeAction.UPDATE,
                "property_transfers",
                transfer.id,
                status="Completed",
                reassigned=reassigned,
            )

        logger.info(
            "transfer_completed",
            transfer_id=transfer.id,
            transfer_number=transfer.transfer_number,
            reassigned=reassigned,
            ledger_entries=posted,
            slip_number=slip.slip_number,
        )
        return TransferCompletion(
            transfer=transfer, reassigned=reassigned, ledger_entries=posted, slip=slip
        )

    async def _issue_receiver_slip(
        self, transfer: Transfer, items: list[CustodianSlipItem], when: date
    ) -> CustodianSlip:
        async def insert(number: str) -> CustodianSlip:
            slip = CustodianSlip(
                slip_number=number,
                custodian_name=transfer.to_custodian,
                designation=transfer.to_position,
                date_issued=when,
                issued_by=transfer.from_custodian,
                received_by=transfer.to_custodian,
                slip_status=SlipStatus.ISSUED,
                items=[item.model_copy() for item in items],
            )
            return await self._slips.create_slip(slip)

        return await self._slip_numbers.insert_with_number(
            when.year, insert, DuplicateSlipNumberError
        )

    async def reject(
        self, transfer_id: str, actor: str = "", reason: str | None = None
    ) -> Transfer:
        """Draft|Issued -> Rejected. No custody or ledger change."""
        async with self._tx.transaction():
            transfer = await self.get(transfer_id)
            self._ensure_transition(transfer, TransferStatus.REJECTED)

            transfer.status = TransferStatus.REJECTED
            if reason:
                transfer.remarks = reason
            await self._transfers.update_status(transfer)
            await self._add_history(transfer, "rejected", actor, reason)
            await self._recorder.record(
                actor, ChangeAction.UPDATE, "property_transfers", transfer.id, status="Rejected"
            )

        logger.info(
            "transfer_rejected",
            transfer_id=transfer.id,
            transfer_number=transfer.transfer_number,
            reason=reason,
        )
        return transfer

    async def delete(self, transfer_id: str, actor: str = "") -> None:
        """
        Remove a Draft transfer with its items and history.

        Raises:
            ReferentialBlockError: the transfer has been issued or closed
        """
        async with self._tx.transaction():
            transfer = await self.get(transfer_id)
            if not transfer.is_deletable:
                raise ReferentialBlockError(
                    "transfer",
                    transfer.id,
                    blockers=[
                        {
                            "table": "property_transfers",
                            "record_id": transfer.id,
                            "reason": (
                                f"transfer {transfer.transfer_number} is "
                                f"{transfer.status.value}; only Draft transfers can be deleted"
                            ),
                        }
                    ],
                )
            await self._transfers.delete_transfer(transfer.id)
            await self._recorder.record(
                actor,
                ChangeAction.DELETE,
                "property_transfers",
                transfer.id,
                transfer_number=transfer.transfer_number,
            )

        logger.info(
            "transfer_deleted",
            transfer_id=transfer.id,
            transfer_number=transfer.transfer_number,
        )
