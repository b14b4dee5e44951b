"""
Referential cleanup service.

Decides whether an inventory item, property card or transfer may be
deleted, explains what blocks it, and performs forced cascading deletes.

An item that is under custody can never be deleted, force or not. Other
dependents only block a plain delete; a forced delete removes them first,
all inside one transaction.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from semiprop.config import get_logger
from semiprop.core.entities.audit import ChangeAction
from semiprop.core.entities.inventory import InventoryItem
from semiprop.core.entities.property_card import PropertyCard
from semiprop.core.exceptions import (
    CascadeDeleteError,
    ConcurrentDeleteError,
    CustodyBlockError,
    DatabaseError,
    PropertyCardNotFoundError,
    ReferentialBlockError,
)
from semiprop.core.interfaces.custodian_slip_store import ICustodianSlipStore
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.core.interfaces.property_card_store import IPropertyCardStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.interfaces.transfer_store import ITransferStore
from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.item_resolver import ItemResolver
from semiprop.core.services.ledger_engine import LedgerEngine
from semiprop.core.services.transfer_workflow import TransferWorkflow

logger = get_logger(__name__)


class EntityType(str, Enum):
    """Entities whose deletion goes through this service."""

    INVENTORY_ITEM = "inventory_item"
    PROPERTY_CARD = "property_card"
    TRANSFER = "transfer"


@dataclass
class Blocker:
    """A row that prevents a delete, and why."""

    table: str
    record_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "record_id": self.record_id, "reason": self.reason}


@dataclass
class DeleteCheck:
    """Result of a deletability check."""

    entity_type: EntityType
    entity_id: str
    blockers: list[Blocker] = field(default_factory=list)
    custodian: str | None = None  # set when custody blocks the delete

    @property
    def can_delete(self) -> bool:
        return not self.blockers

    @property
    def custody_blocked(self) -> bool:
        return self.custodian is not None


@dataclass
class CascadeReport:
    """Rows removed or detached by a delete."""

    entity_type: EntityType
    entity_id: str
    deleted: dict[str, int] = field(default_factory=dict)
    detached: dict[str, int] = field(default_factory=dict)
    retried: bool = False

    def count(self, table: str, rows: int) -> None:
        if rows:
            self.deleted[table] = self.deleted.get(table, 0) + rows

    def detach(self, table: str, rows: int) -> None:
        if rows:
            self.detached[table] = self.detached.get(table, 0) + rows


class CleanupService:
    """Deletion gatekeeper for items, property cards and transfers."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        card_store: IPropertyCardStore,
        slip_store: ICustodianSlipStore,
        transfer_store: ITransferStore,
        ledger: LedgerEngine,
        workflow: TransferWorkflow,
        transactions: ITransactionManager,
        resolver: ItemResolver,
        recorder: ChangeRecorder | None = None,
    ) -> None:
        self._inventory = inventory_store
        self._cards = card_store
        self._slips = slip_store
        self._transfers = transfer_store
        self._ledger = ledger
        self._workflow = workflow
        self._tx = transactions
        self._resolver = resolver
        self._recorder = recorder or ChangeRecorder(transactions)

    async def can_delete(self, entity_type: EntityType | str, entity_id: str) -> bool:
        check = await self.check(entity_type, entity_id)
        return check.can_delete

    async def check(self, entity_type: EntityType | str, entity_id: str) -> DeleteCheck:
        """List everything that currently blocks a plain delete."""
        entity_type = EntityType(entity_type)
        if entity_type == EntityType.INVENTORY_ITEM:
            item = await self._resolver.require_item(entity_id)
            return await self._check_item(item)
        if entity_type == EntityType.PROPERTY_CARD:
            card = await self._require_card(entity_id)
            return await self._check_card(card)

        transfer = await self._workflow.get(entity_id)
        check = DeleteCheck(entity_type, transfer.id)
        if not transfer.is_deletable:
            check.blockers.append(
                Blocker(
                    "property_transfers",
                    transfer.id,
                    f"transfer {transfer.transfer_number} is {transfer.status.value}; "
                    "only Draft transfers can be deleted",
                )
            )
        return check

    async def delete(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        force: bool = False,
        actor: str = "",
    ) -> CascadeReport:
        """
        Delete an entity, cascading to dependents when forced.

        Raises:
            CustodyBlockError: the item is held by a custodian (never bypassed)
            ReferentialBlockError: dependents exist and force is False
            ConcurrentDeleteError: the final row delete did not affect exactly one row
            CascadeDeleteError: the delete failed again after a cleanup retry
        """
        entity_type = EntityType(entity_type)
        if entity_type == EntityType.INVENTORY_ITEM:
            return await self._delete_item(entity_id, force, actor)
        if entity_type == EntityType.PROPERTY_CARD:
            return await self._delete_card(entity_id, force, actor)

        transfer = await self._workflow.get(entity_id)
        report = CascadeReport(entity_type, transfer.id)
        await self._workflow.delete(transfer.id, actor=actor)
        report.count("transfer_items", len(transfer.items))
        report.count("property_transfers", 1)
        return report

    # Inventory items

    async def _item_dependents(self, item: InventoryItem) -> list[Blocker]:
        blockers: list[Blocker] = []

        transfer_numbers: dict[str, str] = {}
        for ti in await self._transfers.list_items_for_item(item.id, item.property_number):
            if ti.transfer_id not in transfer_numbers:
                transfer = await self._transfers.get_transfer(ti.transfer_id)
                transfer_numbers[ti.transfer_id] = (
                    transfer.transfer_number if transfer else ti.transfer_id
                )
            blockers.append(
                Blocker(
                    "transfer_items",
                    ti.id,
                    f"listed on transfer {transfer_numbers[ti.transfer_id]}",
                )
            )

        for si in await self._slips.list_items_for_item(item.id, item.property_number):
            blockers.append(
                Blocker("custodian_slip_items", si.id, f"issued on custodian slip {si.slip_id}")
            )

        for card in await self._cards.list_cards_for_item(item.id, item.property_number):
            entries = await self._cards.list_entries(card.id)
            if entries:
                blockers.append(
                    Blocker(
                        "property_card_entries",
                        card.id,
                        f"property card {card.property_number} has {len(entries)} entr"
                        f"{'y' if len(entries) == 1 else 'ies'}",
                    )
                )
        for entry in await self._cards.list_entries_by_issue_item(item.property_number):
            if not any(b.record_id == entry.property_card_id for b in blockers):
                blockers.append(
                    Blocker(
                        "property_card_entries",
                        entry.id,
                        f"issued on ledger entry {entry.reference or entry.id}",
                    )
                )
        return blockers

    async def _check_item(self, item: InventoryItem) -> DeleteCheck:
        check = DeleteCheck(EntityType.INVENTORY_ITEM, item.id)
        if item.is_under_custody:
            check.custodian = item.custodian or ""
            check.blockers.append(
                Blocker(
                    "inventory_items",
                    item.id,
                    f"assigned to {item.custodian or 'a custodian'}",
                )
            )
        check.blockers.extend(await self._item_dependents(item))
        return check

    async def _scrub_item(self, item: InventoryItem, report: CascadeReport) -> None:
        """Remove every row that references the item, then orphaned parents."""
        transfer_items = await self._transfers.list_items_for_item(item.id, item.property_number)
        transfer_ids = sorted({ti.transfer_id for ti in transfer_items if ti.transfer_id})
        report.count(
            "transfer_items", await self._transfers.delete_items([ti.id for ti in transfer_items])
        )

        slip_items = await self._slips.list_items_for_item(item.id, item.property_number)
        report.count(
            "custodian_slip_items", await self._slips.delete_items([si.id for si in slip_items])
        )

        own_cards = await self._cards.list_cards_for_item(item.id, item.property_number)
        entries = []
        for card in own_cards:
            entries.extend(await self._cards.list_entries(card.id))
        entries.extend(await self._cards.list_entries_by_issue_item(item.property_number))
        entry_ids = sorted({e.id for e in entries})
        touched_cards = {card.id for card in own_cards} | {e.property_card_id for e in entries}

        report.detach("custodian_slip_items", await self._slips.clear_entry_references(entry_ids))
        report.count("property_card_entries", await self._cards.delete_entries(entry_ids))

        for transfer_id in await self._transfers.list_empty(transfer_ids):
            report.count("property_transfers", await self._transfers.delete_transfer(transfer_id))

        for card_id in sorted(touched_cards):
            if await self._cards.list_entries(card_id):
                # Surviving entries on someone else's card need fresh balances
                await self._ledger.recompute(card_id)
            else:
                report.count("property_cards", await self._cards.delete_card(card_id))

    async def _delete_item(self, entity_id: str, force: bool, actor: str) -> CascadeReport:
        async with self._tx.transaction():
            item = await self._resolver.require_item(entity_id)

            if item.is_under_custody:
                logger.warning(
                    "delete_blocked_by_custody",
                    item_id=item.id,
                    property_number=item.property_number,
                    custodian=item.custodian,
                    force=force,
                )
                raise CustodyBlockError(item.id, item.property_number, item.custodian)

            dependents = await self._item_dependents(item)
            if dependents and not force:
                logger.info(
                    "delete_blocked_by_dependents",
                    item_id=item.id,
                    dependents=len(dependents),
                )
                raise ReferentialBlockError(
                    EntityType.INVENTORY_ITEM.value,
                    item.id,
                    [b.to_dict() for b in dependents],
                )

            report = CascadeReport(EntityType.INVENTORY_ITEM, item.id)

            async def attempt() -> None:
                await self._scrub_item(item, report)
                affected = await self._inventory.delete_item(item.id)
                if affected != 1:
                    raise ConcurrentDeleteError("inventory_items", item.id, affected)
                report.count("inventory_items", affected)

            async def remaining() -> list[dict[str, Any]]:
                return [b.to_dict() for b in await self._item_dependents(item)]

            await self._attempt_twice(report, attempt, remaining)
            await self._recorder.record(
                actor,
                ChangeAction.DELETE,
                "inventory_items",
                item.id,
                property_number=item.property_number,
                force=force,
                cascade=report.deleted,
            )

        logger.info(
            "inventory_item_removed",
            item_id=item.id,
            property_number=item.property_number,
            force=force,
            deleted=report.deleted,
            detached=report.detached,
        )
        return report

    # Property cards

    async def _require_card(self, card_id: str) -> PropertyCard:
        card = await self._cards.get_card(card_id)
        if card is None:
            raise PropertyCardNotFoundError(card_id)
        return card

    async def _card_blockers(self, card: PropertyCard) -> list[Blocker]:
        entries = await self._cards.list_entries(card.id)
        line_of = {e.id: e.line_no for e in entries}
        referencing = await self._slips.list_items_referencing_entries(list(line_of))
        return [
            Blocker(
                "custodian_slip_items",
                si.id,
                f"custodian slip {si.slip_id} line for {si.property_number} "
                f"references entry #{line_of.get(si.property_card_entry_id, '?')}",
            )
            for si in referencing
        ]

    async def _check_card(self, card: PropertyCard) -> DeleteCheck:
        check = DeleteCheck(EntityType.PROPERTY_CARD, card.id)
        check.blockers.extend(await self._card_blockers(card))
        return check

    async def _delete_card(self, card_id: str, force: bool, actor: str) -> CascadeReport:
        async with self._tx.transaction():
            card = await self._require_card(card_id)
            blockers = await self._card_blockers(card)
            if blockers and not force:
                raise ReferentialBlockError(
                    EntityType.PROPERTY_CARD.value, card.id, [b.to_dict() for b in blockers]
                )

            report = CascadeReport(EntityType.PROPERTY_CARD, card.id)

            async def attempt() -> None:
                entry_ids = [e.id for e in await self._cards.list_entries(card.id)]
                report.detach(
                    "custodian_slip_items", await self._slips.clear_entry_references(entry_ids)
                )
                report.count("property_card_entries", await self._cards.delete_entries(entry_ids))
                affected = await self._cards.delete_card(card.id)
                if affected != 1:
                    raise ConcurrentDeleteError("property_cards", card.id, affected)
                report.count("property_cards", affected)

            async def remaining() -> list[dict[str, Any]]:
                return [b.to_dict() for b in await self._card_blockers(card)]

            await self._attempt_twice(report, attempt, remaining)
            await self._recorder.record(
                actor,
                ChangeAction.DELETE,
                "property_cards",
                card.id,
                property_number=card.property_number,
                force=force,
            )

        logger.info(
            "property_card_removed",
            card_id=card.id,
            property_number=card.property_number,
            deleted=report.deleted,
        )
        return report

    async def _attempt_twice(
        self,
        report: CascadeReport,
        attempt: Callable[[], Awaitable[None]],
        remaining: Callable[[], Awaitable[list[dict[str, Any]]]],
    ) -> None:
        def log_retry(retry_state: RetryCallState) -> None:
            report.retried = True
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "cascade_delete_retrying",
                entity_type=report.entity_type.value,
                entity_id=report.entity_id,
                error=str(error),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(2),
            retry=retry_if_exception_type(DatabaseError),
            before_sleep=log_retry,
        )
        try:
            async for retry_attempt in retrying:
                with retry_attempt:
                    await attempt()
        except RetryError as e:
            second = e.last_attempt.exception()
            error = second.details.get("error", second.message)
            left = await remaining()
            logger.error(
                "cascade_delete_failed",
                entity_type=report.entity_type.value,
                entity_id=report.entity_id,
                error=error,
                remaining=left,
            )
            raise CascadeDeleteError(
                report.entity_type.value, report.entity_id, error, left
            ) from second
