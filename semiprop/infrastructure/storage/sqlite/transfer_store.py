"""SQLite implementation of transfer storage."""

from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite

from semiprop.config import get_logger
from semiprop.core.entities.transfer import (
    LEGACY_STATUSES,
    OPEN_STATUSES,
    Transfer,
    TransferHistoryEntry,
    TransferItem,
    TransferStatistics,
    TransferStatus,
)
from semiprop.core.exceptions import DatabaseError, DuplicateTransferNumberError
from semiprop.core.interfaces.transfer_store import ITransferStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool
from semiprop.infrastructure.storage.sqlite.mapping import (
    PROPERTY_TRANSFERS,
    TRANSFER_HISTORY,
    TRANSFER_ITEMS,
)

logger = get_logger(__name__)

# Stored values that read as an open (Draft/Issued) status
_OPEN_STORED = [s.value for s in OPEN_STATUSES] + [
    legacy for legacy, status in LEGACY_STATUSES.items() if status in OPEN_STATUSES
]


def _placeholders(values: list[str]) -> str:
    return ", ".join("?" for _ in values)


class SQLiteTransferStore(ITransferStore):
    """SQLite implementation of transfers, transfer items and history."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def create_transfer(self, transfer: Transfer) -> Transfer:
        """Insert a transfer header and its items."""
        now = datetime.now(UTC)
        transfer.id = transfer.id or uuid4().hex
        transfer.created_at = now
        transfer.updated_at = now
        async with self.pool.transaction() as conn:
            try:
                await conn.execute(
                    PROPERTY_TRANSFERS.insert_sql(),
                    PROPERTY_TRANSFERS.insert_params(transfer),
                )
            except aiosqlite.IntegrityError as e:
                if "transfer_number" in str(e):
                    raise DuplicateTransferNumberError(transfer.transfer_number) from e
                raise

            for item in transfer.items:
                item.id = item.id or uuid4().hex
                item.transfer_id = transfer.id
                item.created_at = now
                await conn.execute(
                    TRANSFER_ITEMS.insert_sql(), TRANSFER_ITEMS.insert_params(item)
                )

            logger.info(
                "transfer_created",
                transfer_id=transfer.id,
                transfer_number=transfer.transfer_number,
                items=len(transfer.items),
            )
            return transfer

    async def _load_items(self, conn: aiosqlite.Connection, transfer_id: str) -> list[TransferItem]:
        cursor = await conn.execute(
            "SELECT * FROM transfer_items WHERE transfer_id = ? ORDER BY created_at, rowid",
            (transfer_id,),
        )
        return [TRANSFER_ITEMS.from_row(r) for r in await cursor.fetchall()]

    async def get_transfer(self, transfer_id: str) -> Transfer | None:
        """Get a transfer with its items."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM property_transfers WHERE id = ?", (transfer_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            items = await self._load_items(conn, transfer_id)
            return PROPERTY_TRANSFERS.from_row(row, items=items)

    async def get_by_number(self, transfer_number: str) -> Transfer | None:
        """Get a transfer by number."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM property_transfers WHERE transfer_number = ?",
                (transfer_number,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            items = await self._load_items(conn, row["id"])
            return PROPERTY_TRANSFERS.from_row(row, items=items)

    async def list_transfer_numbers(self, prefix: str) -> list[str]:
        """List transfer numbers with a prefix."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT transfer_number FROM property_transfers WHERE transfer_number LIKE ?",
                (f"{prefix}%",),
            )
            return [row[0] for row in await cursor.fetchall()]

    async def update_status(self, transfer: Transfer) -> Transfer:
        """Persist workflow fields of a transfer."""
        transfer.updated_at = datetime.now(UTC)
        columns = [
            "status",
            "approved_by",
            "date_approved",
            "date_completed",
            "remarks",
            "updated_at",
        ]
        async with self.pool.transaction() as conn:
            await conn.execute(
                PROPERTY_TRANSFERS.update_sql(columns),
                PROPERTY_TRANSFERS.update_params(transfer, columns),
            )
            return transfer

    async def add_history(self, entry: TransferHistoryEntry) -> TransferHistoryEntry:
        """Append a history row."""
        async with self.pool.transaction() as conn:
            cursor = await conn.execute(
                TRANSFER_HISTORY.insert_sql(), TRANSFER_HISTORY.insert_params(entry)
            )
            entry.id = cursor.lastrowid
            return entry

    async def list_history(self, transfer_id: str) -> list[TransferHistoryEntry]:
        """List history oldest first."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM transfer_history WHERE transfer_id = ? ORDER BY id",
                (transfer_id,),
            )
            return [TRANSFER_HISTORY.from_row(r) for r in await cursor.fetchall()]

    async def list_open_for_item(self, item_id: str, property_number: str) -> list[Transfer]:
        """List Draft/Issued transfers carrying the item (blank status reads as Draft)."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT DISTINCT t.* FROM property_transfers t
                JOIN transfer_items ti ON ti.transfer_id = t.id
                WHERE (ti.inventory_item_id = ? OR ti.property_number = ?)
                  AND (t.status IN ({_placeholders(_OPEN_STORED)})
                       OR t.status IS NULL OR t.status = '')
                ORDER BY t.transfer_number
                """,
                (item_id, property_number, *_OPEN_STORED),
            )
            rows = await cursor.fetchall()
            return [PROPERTY_TRANSFERS.from_row(row) for row in rows]

    async def list_items_for_item(self, item_id: str, property_number: str) -> list[TransferItem]:
        """List transfer items linked to an inventory item."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM transfer_items
                WHERE inventory_item_id = ? OR property_number = ?
                ORDER BY created_at, rowid
                """,
                (item_id, property_number),
            )
            return [TRANSFER_ITEMS.from_row(r) for r in await cursor.fetchall()]

    async def delete_items(self, transfer_item_ids: list[str]) -> int:
        """Delete transfer items by ID."""
        if not transfer_item_ids:
            return 0
        async with self.pool.transaction() as conn:
            cursor = await conn.execute(
                f"DELETE FROM transfer_items WHERE id IN ({_placeholders(transfer_item_ids)})",
                transfer_item_ids,
            )
            logger.info("transfer_items_deleted", count=cursor.rowcount)
            return cursor.rowcount

    async def list_empty(self, transfer_ids: list[str]) -> list[str]:
        """Return transfers from the given set that have no items."""
        if not transfer_ids:
            return []
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT t.id FROM property_transfers t
                WHERE t.id IN ({_placeholders(transfer_ids)})
                  AND NOT EXISTS (
                      SELECT 1 FROM transfer_items ti WHERE ti.transfer_id = t.id
                  )
                """,
                transfer_ids,
            )
            return [row[0] for row in await cursor.fetchall()]

    async def delete_transfer(self, transfer_id: str) -> int:
        """Delete history, items, then the header."""
        async with self.pool.transaction() as conn:
            await conn.execute("DELETE FROM transfer_history WHERE transfer_id = ?", (transfer_id,))
            await conn.execute("DELETE FROM transfer_items WHERE transfer_id = ?", (transfer_id,))
            try:
                cursor = await conn.execute(
                    "DELETE FROM property_transfers WHERE id = ?", (transfer_id,)
                )
            except aiosqlite.IntegrityError as e:
                raise DatabaseError("delete property_transfers", str(e)) from e
            logger.info("transfer_deleted", transfer_id=transfer_id, affected=cursor.rowcount)
            return cursor.rowcount

    async def statistics(self) -> TransferStatistics:
        """Count transfers by status and by type."""
        stats = TransferStatistics()
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT status, COUNT(*) FROM property_transfers GROUP BY status"
            )
            for status, count in await cursor.fetchall():
                key = TransferStatus.parse(status).value
                stats.by_status[key] = stats.by_status.get(key, 0) + count
                stats.total += count

            cursor = await conn.execute(
                "SELECT transfer_type, COUNT(*) FROM property_transfers GROUP BY transfer_type"
            )
            for transfer_type, count in await cursor.fetchall():
                stats.by_type[transfer_type or "Others"] = count
        return stats
