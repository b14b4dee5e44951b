"""SQLite implementation of custodian slip storage."""

from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite

from semiprop.config import get_logger
from semiprop.core.entities.custodian_slip import CustodianSlip, CustodianSlipItem
from semiprop.core.exceptions import DuplicateSlipNumberError
from semiprop.core.interfaces.custodian_slip_store import ICustodianSlipStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool
from semiprop.infrastructure.storage.sqlite.mapping import (
    CUSTODIAN_SLIP_ITEMS,
    CUSTODIAN_SLIPS,
)

logger = get_logger(__name__)


def _placeholders(values: list[str]) -> str:
    return ", ".join("?" for _ in values)


class SQLiteCustodianSlipStore(ICustodianSlipStore):
    """SQLite implementation of custodian slips and slip items."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def create_slip(self, slip: CustodianSlip) -> CustodianSlip:
        """Create a slip with its items in one transaction."""
        now = datetime.now(UTC)
        slip.id = slip.id or uuid4().hex
        slip.created_at = now
        slip.updated_at = now
        async with self.pool.transaction() as conn:
            try:
                await conn.execute(CUSTODIAN_SLIPS.insert_sql(), CUSTODIAN_SLIPS.insert_params(slip))
            except aiosqlite.IntegrityError as e:
                if "slip_number" in str(e):
                    raise DuplicateSlipNumberError(slip.slip_number) from e
                raise

            for item in slip.items:
                item.id = item.id or uuid4().hex
                item.slip_id = slip.id
                item.date_issued = item.date_issued or slip.date_issued
                item.total_cost = round(item.unit_cost * item.quantity, 2)
                item.created_at = now
                await conn.execute(
                    CUSTODIAN_SLIP_ITEMS.insert_sql(),
                    CUSTODIAN_SLIP_ITEMS.insert_params(item),
                )

            logger.info(
                "custodian_slip_created",
                slip_id=slip.id,
                slip_number=slip.slip_number,
                custodian=slip.custodian_name,
                items=len(slip.items),
            )
            return slip

    async def get_slip(self, slip_id: str) -> CustodianSlip | None:
        """Get a slip with its items."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM custodian_slips WHERE id = ?", (slip_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            cursor = await conn.execute(
                "SELECT * FROM custodian_slip_items WHERE slip_id = ? ORDER BY created_at, rowid",
                (slip_id,),
            )
            items = [CUSTODIAN_SLIP_ITEMS.from_row(r) for r in await cursor.fetchall()]
            return CUSTODIAN_SLIPS.from_row(row, items=items)

    async def list_slip_numbers(self, prefix: str) -> list[str]:
        """List slip numbers with a prefix."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT slip_number FROM custodian_slips WHERE slip_number LIKE ?",
                (f"{prefix}%",),
            )
            return [row[0] for row in await cursor.fetchall()]

    async def list_items_for_item(self, item_id: str, property_number: str) -> list[CustodianSlipItem]:
        """List slip items linked to an inventory item."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM custodian_slip_items
                WHERE inventory_item_id = ? OR property_number = ?
                ORDER BY created_at, rowid
                """,
                (item_id, property_number),
            )
            return [CUSTODIAN_SLIP_ITEMS.from_row(r) for r in await cursor.fetchall()]

    async def list_items_referencing_entries(self, entry_ids: list[str]) -> list[CustodianSlipItem]:
        """List slip items that point at ledger entries."""
        if not entry_ids:
            return []
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM custodian_slip_items
                WHERE property_card_entry_id IN ({_placeholders(entry_ids)})
                """,
                entry_ids,
            )
            return [CUSTODIAN_SLIP_ITEMS.from_row(r) for r in await cursor.fetchall()]

    async def clear_entry_references(self, entry_ids: list[str]) -> int:
        """Detach slip items from ledger entries about to be removed."""
        if not entry_ids:
            return 0
        async with self.pool.transaction() as conn:
            cursor = await conn.execute(
                f"""
                UPDATE custodian_slip_items SET property_card_entry_id = NULL
                WHERE property_card_entry_id IN ({_placeholders(entry_ids)})
                """,
                entry_ids,
            )
            if cursor.rowcount:
                logger.info("slip_item_entry_references_cleared", count=cursor.rowcount)
            return cursor.rowcount

    async def delete_items(self, slip_item_ids: list[str]) -> int:
        """Delete slip items by ID."""
        if not slip_item_ids:
            return 0
        async with self.pool.transaction() as conn:
            # Transfer items may trace back to these slip lines
            await conn.execute(
                f"""
                UPDATE transfer_items SET custodian_slip_item_id = NULL
                WHERE custodian_slip_item_id IN ({_placeholders(slip_item_ids)})
                """,
                slip_item_ids,
            )
            cursor = await conn.execute(
                f"DELETE FROM custodian_slip_items WHERE id IN ({_placeholders(slip_item_ids)})",
                slip_item_ids,
            )
            logger.info("slip_items_deleted", count=cursor.rowcount)
            return cursor.rowcount
