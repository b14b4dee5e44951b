"""SQLite implementation of property card and ledger entry storage."""

from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite

from semiprop.config import get_logger
from semiprop.core.entities.property_card import PropertyCard, SPCEntry
from semiprop.core.exceptions import DatabaseError
from semiprop.core.interfaces.property_card_store import IPropertyCardStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool
from semiprop.infrastructure.storage.sqlite.mapping import (
    PROPERTY_CARD_ENTRIES,
    PROPERTY_CARDS,
)

logger = get_logger(__name__)


def _placeholders(values: list[str]) -> str:
    return ", ".join("?" for _ in values)


class SQLitePropertyCardStore(IPropertyCardStore):
    """SQLite implementation of property cards and their entries."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    # Card operations

    async def create_card(self, card: PropertyCard) -> PropertyCard:
        """Create a new property card."""
        now = datetime.now(UTC)
        card.id = card.id or uuid4().hex
        card.created_at = now
        card.updated_at = now
        async with self.pool.transaction() as conn:
            await conn.execute(PROPERTY_CARDS.insert_sql(), PROPERTY_CARDS.insert_params(card))
            logger.info(
                "property_card_created",
                card_id=card.id,
                property_number=card.property_number,
            )
            return card

    async def get_card(self, card_id: str) -> PropertyCard | None:
        """Get property card by ID."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM property_cards WHERE id = ?", (card_id,)
            )
            row = await cursor.fetchone()
            return PROPERTY_CARDS.from_row(row) if row else None

    async def get_card_by_item_id(self, item_id: str) -> PropertyCard | None:
        """Get the card linked to an inventory item."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_cards
                WHERE inventory_item_id = ?
                ORDER BY created_at, rowid LIMIT 1
                """,
                (item_id,),
            )
            row = await cursor.fetchone()
            return PROPERTY_CARDS.from_row(row) if row else None

    async def get_card_by_property_number(self, property_number: str) -> PropertyCard | None:
        """Get the card carrying a property number."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_cards
                WHERE property_number = ?
                ORDER BY created_at, rowid LIMIT 1
                """,
                (property_number,),
            )
            row = await cursor.fetchone()
            return PROPERTY_CARDS.from_row(row) if row else None

    async def list_cards_for_item(self, item_id: str, property_number: str) -> list[PropertyCard]:
        """List cards linked by item id or by property number."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_cards
                WHERE inventory_item_id = ? OR property_number = ?
                ORDER BY created_at, rowid
                """,
                (item_id, property_number),
            )
            rows = await cursor.fetchall()
            return [PROPERTY_CARDS.from_row(row) for row in rows]

    async def delete_card(self, card_id: str) -> int:
        """Delete a property card row."""
        async with self.pool.transaction() as conn:
            try:
                cursor = await conn.execute("DELETE FROM property_cards WHERE id = ?", (card_id,))
            except aiosqlite.IntegrityError as e:
                raise DatabaseError("delete property_cards", str(e)) from e
            logger.info("property_card_deleted", card_id=card_id, affected=cursor.rowcount)
            return cursor.rowcount

    # Entry operations

    async def add_entry(self, entry: SPCEntry) -> SPCEntry:
        """Insert an entry with the next line number on its card."""
        now = datetime.now(UTC)
        entry.id = entry.id or uuid4().hex
        entry.created_at = now
        entry.updated_at = now
        async with self.pool.transaction() as conn:
            cursor = await conn.execute(
                """
                SELECT COALESCE(MAX(line_no), 0) + 1
                FROM property_card_entries WHERE property_card_id = ?
                """,
                (entry.property_card_id,),
            )
            row = await cursor.fetchone()
            entry.line_no = row[0]
            await conn.execute(
                PROPERTY_CARD_ENTRIES.insert_sql(),
                PROPERTY_CARD_ENTRIES.insert_params(entry),
            )
            logger.debug(
                "ledger_entry_added",
                entry_id=entry.id,
                card_id=entry.property_card_id,
                line_no=entry.line_no,
            )
            return entry

    async def get_entry(self, entry_id: str) -> SPCEntry | None:
        """Get a ledger entry by ID."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM property_card_entries WHERE id = ?", (entry_id,)
            )
            row = await cursor.fetchone()
            return PROPERTY_CARD_ENTRIES.from_row(row) if row else None

    async def list_entries(self, card_id: str) -> list[SPCEntry]:
        """List a card's entries in ledger order."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_card_entries
                WHERE property_card_id = ?
                ORDER BY date, line_no
                """,
                (card_id,),
            )
            rows = await cursor.fetchall()
            return [PROPERTY_CARD_ENTRIES.from_row(row) for row in rows]

    async def update_entry(self, entry: SPCEntry) -> SPCEntry:
        """Rewrite an entry."""
        entry.updated_at = datetime.now(UTC)
        async with self.pool.transaction() as conn:
            await conn.execute(
                PROPERTY_CARD_ENTRIES.update_sql(),
                PROPERTY_CARD_ENTRIES.update_params(entry),
            )
            return entry

    async def update_balances(self, entry_id: str, balance_qty: int, amount: float) -> None:
        """Rewrite the computed columns of an entry."""
        async with self.pool.transaction() as conn:
            await conn.execute(
                """
                UPDATE property_card_entries
                SET balance_qty = ?, amount = ?, updated_at = ?
                WHERE id = ?
                """,
                (balance_qty, amount, datetime.now(UTC).isoformat(), entry_id),
            )

    async def find_entry(
        self, card_id: str, reference: str, issue_item_no: str
    ) -> SPCEntry | None:
        """Find an entry by reference and issued item number."""
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_card_entries
                WHERE property_card_id = ? AND reference = ? AND issue_item_no = ?
                ORDER BY line_no LIMIT 1
                """,
                (card_id, reference, issue_item_no),
            )
            row = await cursor.fetchone()
            return PROPERTY_CARD_ENTRIES.from_row(row) if row else None

    async def list_entries_by_issue_item(self, issue_item_no: str) -> list[SPCEntry]:
        """List entries on any card that issued the given item number."""
        if not issue_item_no:
            return []
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM property_card_entries
                WHERE issue_item_no = ?
                ORDER BY property_card_id, date, line_no
                """,
                (issue_item_no,),
            )
            rows = await cursor.fetchall()
            return [PROPERTY_CARD_ENTRIES.from_row(row) for row in rows]

    async def delete_entries(self, entry_ids: list[str]) -> int:
        """Delete entries by ID."""
        if not entry_ids:
            return 0
        async with self.pool.transaction() as conn:
            try:
                cursor = await conn.execute(
                    f"DELETE FROM property_card_entries WHERE id IN ({_placeholders(entry_ids)})",
                    entry_ids,
                )
            except aiosqlite.IntegrityError as e:
                raise DatabaseError("delete property_card_entries", str(e)) from e
            logger.info("ledger_entries_deleted", count=cursor.rowcount)
            return cursor.rowcount
