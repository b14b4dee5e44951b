"""SQLite implementation of inventory item storage."""

from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite

from semiprop.config import get_logger
from semiprop.core.entities.inventory import InventoryItem
from semiprop.core.exceptions import DatabaseError, ValidationError
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool
from semiprop.infrastructure.storage.sqlite.mapping import INVENTORY_ITEMS

logger = get_logger(__name__)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of inventory item storage."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        now = datetime.now(UTC)
        item.id = item.id or uuid4().hex
        item.created_at = now
        item.updated_at = now
        item.recompute_total()
        async with self.pool.transaction() as conn:
            try:
                await conn.execute(
                    INVENTORY_ITEMS.insert_sql(), INVENTORY_ITEMS.insert_params(item)
                )
            except aiosqlite.IntegrityError as e:
                if "property_number" in str(e):
                    raise ValidationError(
                        "property_number", "already exists", item.property_number
                    ) from e
                raise
            logger.info(
                "inventory_item_created",
                item_id=item.id,
                property_number=item.property_number,
            )
            return item

    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get inventory item by ID."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return INVENTORY_ITEMS.from_row(row)

    async def get_item_by_property_number(self, property_number: str) -> InventoryItem | None:
        """Get inventory item by property number."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_items WHERE property_number = ?",
                (property_number,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return INVENTORY_ITEMS.from_row(row)

    async def update_item(self, item: InventoryItem) -> InventoryItem:
        """Update inventory item."""
        item.updated_at = datetime.now(UTC)
        item.recompute_total()
        async with self.pool.transaction() as conn:
            await conn.execute(
                INVENTORY_ITEMS.update_sql(), INVENTORY_ITEMS.update_params(item)
            )
            logger.debug("inventory_item_updated", item_id=item.id)
            return item

    async def list_items(
        self, limit: int = 100, offset: int = 0
    ) -> list[InventoryItem]:
        """List inventory items with pagination."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM inventory_items
                ORDER BY property_number
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [INVENTORY_ITEMS.from_row(row) for row in rows]

    async def list_by_custodian(self, custodian: str) -> list[InventoryItem]:
        """List items held by a custodian."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM inventory_items
                WHERE custodian = ?
                ORDER BY property_number
                """,
                (custodian,),
            )
            rows = await cursor.fetchall()
            return [INVENTORY_ITEMS.from_row(row) for row in rows]

    async def delete_item(self, item_id: str) -> int:
        """Delete an inventory item row."""
        async with self.pool.transaction() as conn:
            try:
                cursor = await conn.execute(
                    "DELETE FROM inventory_items WHERE id = ?", (item_id,)
                )
            except aiosqlite.IntegrityError as e:
                raise DatabaseError("delete inventory_items", str(e)) from e
            logger.info("inventory_item_deleted", item_id=item_id, affected=cursor.rowcount)
            return cursor.rowcount
