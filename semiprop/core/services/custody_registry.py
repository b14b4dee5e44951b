"""
Custody registry.

Owns the assignment state of inventory items: who holds an item, since
when, and whether it may be handed to someone else. Every write goes
through here so the stored pair (assignment_status, custodian) stays
consistent: an item is Assigned exactly when it names a custodian.
"""

from datetime import date

from semiprop.config import get_logger
from semiprop.core.entities.audit import ChangeAction
from semiprop.core.entities.inventory import (
    AssignmentStatus,
    InventoryItem,
    ItemCondition,
    ItemStatus,
)
from semiprop.core.exceptions import (
    AssignmentInvariantError,
    CustodyChangedError,
    ItemNotAssignableError,
    OpenTransferError,
    ValidationError,
)
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.interfaces.transfer_store import ITransferStore
from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.item_resolver import ItemResolver

logger = get_logger(__name__)


def _norm(name: str | None) -> str:
    return (name or "").strip()


def same_custodian(a: str | None, b: str | None) -> bool:
    """Custodian names match exactly once surrounding whitespace is dropped."""
    return _norm(a) == _norm(b)


def check_assignment_invariant(item: InventoryItem) -> None:
    """Raise if the item's assignment flag and custodian disagree."""
    assigned = item.assignment_status == AssignmentStatus.ASSIGNED
    if assigned != item.has_custodian:
        logger.error(
            "assignment_invariant_violated",
            item_id=item.id,
            property_number=item.property_number,
            assignment_status=item.assignment_status,
            custodian=item.custodian,
        )
        raise AssignmentInvariantError(
            item.property_number,
            item.assignment_status.value if item.assignment_status else None,
            item.custodian,
        )


class CustodyRegistry:
    """Assigns and releases inventory items."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        transfer_store: ITransferStore,
        transactions: ITransactionManager,
        resolver: ItemResolver | None = None,
        recorder: ChangeRecorder | None = None,
    ) -> None:
        self._inventory = inventory_store
        self._transfers = transfer_store
        self._tx = transactions
        self._resolver = resolver or ItemResolver(inventory_store)
        self._recorder = recorder or ChangeRecorder(transactions)

    async def assign(
        self,
        item_id: str,
        custodian: str,
        position: str | None,
        assigned_date: date,
        expected_custodian: str | None = None,
        actor: str = "",
    ) -> InventoryItem:
        """
        Put an item in a custodian's care.

        Re-assigning to the current custodian only refreshes the assignment
        date. ``expected_custodian`` guards against custody moving underneath
        the caller: ``None`` skips the check, ``""`` requires the item to be
        unheld, any other value must match the current custodian.

        Raises:
            ItemNotAssignableError: condition is not Serviceable or status is not Active
            CustodyChangedError: current custodian differs from expected_custodian
        """
        custodian = _norm(custodian)
        if not custodian:
            raise ValidationError("custodian", "custodian is required")

        async with self._tx.transaction():
            item = await self._resolver.require_item(item_id)

            if item.condition != ItemCondition.SERVICEABLE or item.status != ItemStatus.ACTIVE:
                raise ItemNotAssignableError(
                    item.property_number, item.condition.value, item.status.value
                )

            current = _norm(item.custodian)
            if expected_custodian is not None and not same_custodian(current, expected_custodian):
                logger.warning(
                    "custody_changed_concurrently",
                    item_id=item.id,
                    expected=expected_custodian,
                    actual=item.custodian,
                )
                raise CustodyChangedError(item.property_number, expected_custodian, item.custodian)

            unchanged = current == custodian
            item.custodian = custodian
            if position is not None or not unchanged:
                item.custodian_position = position
            item.assignment_status = AssignmentStatus.ASSIGNED
            item.assigned_date = assigned_date
            check_assignment_invariant(item)
            await self._inventory.update_item(item)

            await self._recorder.record(
                actor,
                ChangeAction.UPDATE,
                "inventory_items",
                item.id,
                operation="assign",
                custodian=custodian,
                previous_custodian=current or None,
            )

        logger.info(
            "item_assigned",
            item_id=item.id,
            property_number=item.property_number,
            custodian=custodian,
            previous_custodian=current or None,
            refreshed_only=unchanged,
        )
        return item

    async def release(self, item_id: str, actor: str = "") -> InventoryItem:
        """
        Return an item to the available pool.

        Raises:
            OpenTransferError: a Draft or Issued transfer still carries the item
        """
        async with self._tx.transaction():
            item = await self._resolver.require_item(item_id)

            open_transfers = await self._transfers.list_open_for_item(
                item.id, item.property_number
            )
            if open_transfers:
                numbers = [t.transfer_number for t in open_transfers]
                logger.error(
                    "release_blocked_by_open_transfer",
                    item_id=item.id,
                    property_number=item.property_number,
                    transfers=numbers,
                )
                raise OpenTransferError(item.property_number, numbers)

            previous = item.custodian
            item.custodian = None
            item.custodian_position = None
            item.assigned_date = None
            item.assignment_status = AssignmentStatus.AVAILABLE
            check_assignment_invariant(item)
            await self._inventory.update_item(item)

            await self._recorder.record(
                actor,
                ChangeAction.UPDATE,
                "inventory_items",
                item.id,
                operation="release",
                previous_custodian=previous,
            )

        logger.info(
            "item_released",
            item_id=item.id,
            property_number=item.property_number,
            previous_custodian=previous,
        )
        return item

    async def is_assigned(self, item_id: str) -> bool:
        item = await self._resolver.require_item(item_id)
        return item.is_under_custody

    async def is_available(self, item_id: str) -> bool:
        """Serviceable, Active and not held by anyone."""
        item = await self._resolver.require_item(item_id)
        return item.is_available

    async def list_holdings(self, custodian: str) -> list[InventoryItem]:
        """Items currently held by a custodian."""
        return await self._inventory.list_by_custodian(_norm(custodian))
