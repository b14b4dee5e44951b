"""
Property card ledger engine.

Keeps running balances on semi-expendable property cards. Each entry's
``balance_qty`` and ``amount`` follow from its predecessor in ledger order
(date, then line number):

    balance_qty = prev.balance_qty + receipt_qty - issue_qty
    amount      = prev.amount + receipt_qty * unit_cost - issue_qty * carrying_cost

where ``carrying_cost`` is ``prev.amount / prev.balance_qty`` (0 when the
previous balance is not positive). Amounts are rounded to centavos.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from semiprop.config import get_logger
from semiprop.core.entities.property_card import LedgerEntryInput, SPCEntry
from semiprop.core.exceptions import (
    LedgerEntryNotFoundError,
    PropertyCardNotFoundError,
    ValidationError,
)
from semiprop.core.interfaces.property_card_store import IPropertyCardStore
from semiprop.core.interfaces.transaction import ITransactionManager

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset({
    "date",
    "reference",
    "receipt_qty",
    "unit_cost",
    "issue_item_no",
    "issue_qty",
    "office_officer",
    "remarks",
})


def carrying_cost(balance_qty: int, amount: float) -> float:
    """Average unit cost of what is on hand."""
    if balance_qty <= 0:
        return 0.0
    return amount / balance_qty


def next_balance(
    prev_balance: int,
    prev_amount: float,
    receipt_qty: int,
    unit_cost: float,
    issue_qty: int,
) -> tuple[int, float]:
    """Balance and amount after one entry."""
    balance = prev_balance + receipt_qty - issue_qty
    issued_amount = issue_qty * carrying_cost(prev_balance, prev_amount)
    amount = round(prev_amount + receipt_qty * unit_cost - issued_amount, 2)
    return balance, amount


def walk_balances(
    entries: Iterable[SPCEntry],
    start_balance: int = 0,
    start_amount: float = 0.0,
) -> list[SPCEntry]:
    """
    Recompute balances over entries already in ledger order.

    Entries are updated in place; the ones whose values changed are returned.
    """
    changed = []
    balance, amount = start_balance, start_amount
    for entry in entries:
        balance, amount = next_balance(
            balance, amount, entry.receipt_qty, entry.unit_cost, entry.issue_qty
        )
        if entry.balance_qty != balance or entry.amount != amount:
            entry.balance_qty = balance
            entry.amount = amount
            changed.append(entry)
    return changed


class LedgerEngine:
    """Appends, edits and repairs property card entries."""

    def __init__(
        self,
        card_store: IPropertyCardStore,
        transactions: ITransactionManager,
    ) -> None:
        self._cards = card_store
        self._tx = transactions

    async def entries(self, card_id: str) -> list[SPCEntry]:
        return await self._cards.list_entries(card_id)

    async def has_entry(self, card_id: str, reference: str, issue_item_no: str) -> bool:
        """True if the card already carries an entry for this reference and item."""
        return await self._cards.find_entry(card_id, reference, issue_item_no) is not None

    async def append_entry(self, card_id: str, entry: LedgerEntryInput) -> SPCEntry:
        """
        Append an entry to a card.

        Computed entries take their balance from the predecessor in ledger
        order. When the new entry is dated before existing ones, every later
        entry is rewalked in the same transaction. Entries supplied with both
        ``balance_qty`` and ``amount`` are stored exactly as given.
        """
        async with self._tx.transaction():
            if await self._cards.get_card(card_id) is None:
                raise PropertyCardNotFoundError(card_id)

            new = SPCEntry(
                property_card_id=card_id,
                date=entry.date,
                reference=entry.reference,
                receipt_qty=entry.receipt_qty,
                unit_cost=entry.unit_cost,
                total_cost=round(entry.receipt_qty * entry.unit_cost, 2),
                issue_item_no=entry.issue_item_no,
                issue_qty=entry.issue_qty,
                office_officer=entry.office_officer,
                remarks=entry.remarks,
                related_transfer_id=entry.related_transfer_id,
                related_slip_id=entry.related_slip_id,
            )

            if entry.is_explicit:
                new.balance_qty = entry.balance_qty
                new.amount = round(entry.amount, 2)
                saved = await self._cards.add_entry(new)
                logger.info(
                    "ledger_entry_imported",
                    card_id=card_id,
                    entry_id=saved.id,
                    balance_qty=saved.balance_qty,
                )
                return saved

            existing = await self._cards.list_entries(card_id)
            # Same-day entries go after the ones already recorded that day
            prior = [e for e in existing if e.date <= new.date]
            later = [e for e in existing if e.date > new.date]

            prev = prior[-1] if prior else None
            new.balance_qty, new.amount = next_balance(
                prev.balance_qty if prev else 0,
                prev.amount if prev else 0.0,
                new.receipt_qty,
                new.unit_cost,
                new.issue_qty,
            )
            saved = await self._cards.add_entry(new)

            if later:
                changed = walk_balances(later, saved.balance_qty, saved.amount)
                for e in changed:
                    await self._cards.update_balances(e.id, e.balance_qty, e.amount)
                logger.info(
                    "ledger_out_of_order_append",
                    card_id=card_id,
                    entry_id=saved.id,
                    rewritten=len(changed),
                )

            logger.info(
                "ledger_entry_appended",
                card_id=card_id,
                entry_id=saved.id,
                reference=saved.reference,
                balance_qty=saved.balance_qty,
                amount=saved.amount,
            )
            return saved

    async def recompute(self, card_id: str) -> list[SPCEntry]:
        """Rewalk the whole card and rewrite every balance that is off."""
        async with self._tx.transaction():
            if await self._cards.get_card(card_id) is None:
                raise PropertyCardNotFoundError(card_id)
            entries = await self._cards.list_entries(card_id)
            changed = walk_balances(entries)
            for e in changed:
                await self._cards.update_balances(e.id, e.balance_qty, e.amount)
        logger.info(
            "ledger_recomputed",
            card_id=card_id,
            entries=len(entries),
            rewritten=len(changed),
        )
        return entries

    async def edit_entry(self, entry_id: str, changes: dict[str, Any]) -> list[SPCEntry]:
        """
        Change caller-owned fields of one entry and recompute the card.

        Args:
            entry_id: Entry to edit.
            changes: Field name to new value; computed fields are not accepted.

        Returns:
            The card's entries in ledger order after recomputation.
        """
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                unknown[0], "field cannot be edited", changes[unknown[0]]
            )

        async with self._tx.transaction():
            entry = await self._cards.get_entry(entry_id)
            if entry is None:
                raise LedgerEntryNotFoundError(entry_id)

            current = {name: getattr(entry, name) for name in EDITABLE_FIELDS}
            try:
                checked = LedgerEntryInput(**{**current, **changes})
            except PydanticValidationError as e:
                first = e.errors()[0]
                field = str(first["loc"][0]) if first["loc"] else "entry"
                raise ValidationError(field, first["msg"], changes.get(field)) from e
            for name in changes:
                setattr(entry, name, getattr(checked, name))
            entry.total_cost = round(entry.receipt_qty * entry.unit_cost, 2)
            await self._cards.update_entry(entry)

            logger.info(
                "ledger_entry_edited",
                entry_id=entry_id,
                card_id=entry.property_card_id,
                fields=sorted(changes),
            )
            return await self.recompute(entry.property_card_id)
