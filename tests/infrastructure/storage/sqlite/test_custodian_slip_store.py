"""Tests for SQLite custodian slip storage."""

from datetime import date

import pytest

from semiprop.core.entities import (
    AuditLogEntry,
    CustodianSlip,
    CustodianSlipItem,
    PropertyCard,
    SPCEntry,
    Transfer,
    TransferItem,
)
from semiprop.core.exceptions import DuplicateSlipNumberError
from semiprop.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteAuditStore,
    SQLiteCustodianSlipStore,
    SQLitePropertyCardStore,
    SQLiteTransferStore,
)


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteCustodianSlipStore:
    return SQLiteCustodianSlipStore(pool)


def _slip(number: str, *lines: CustodianSlipItem) -> CustodianSlip:
    return CustodianSlip(
        slip_number=number,
        custodian_name="C1",
        date_issued=date(2025, 1, 15),
        items=list(lines),
    )


class TestCustodianSlipStore:
    async def test_create_fills_line_defaults(self, store: SQLiteCustodianSlipStore):
        slip = await store.create_slip(
            _slip("ICS-2025-0001", CustodianSlipItem(property_number="SP-0001", quantity=2, unit_cost=75.5))
        )

        loaded = await store.get_slip(slip.id)

        (line,) = loaded.items
        assert line.slip_id == slip.id
        assert line.date_issued == date(2025, 1, 15)
        assert line.total_cost == 151.0
        assert await store.list_slip_numbers("ICS-2025-") == ["ICS-2025-0001"]

    async def test_duplicate_number(self, store: SQLiteCustodianSlipStore):
        await store.create_slip(_slip("ICS-2025-0001"))

        with pytest.raises(DuplicateSlipNumberError):
            await store.create_slip(_slip("ICS-2025-0001"))

    async def test_clear_entry_references(self, pool: ConnectionPool, store: SQLiteCustodianSlipStore):
        cards = SQLitePropertyCardStore(pool)
        card = await cards.create_card(PropertyCard(property_number="SP-0001"))
        entry = await cards.add_entry(SPCEntry(property_card_id=card.id, date=date(2025, 1, 10)))
        await store.create_slip(
            _slip(
                "ICS-2025-0001",
                CustodianSlipItem(property_number="SP-0001", property_card_entry_id=entry.id),
            )
        )

        assert len(await store.list_items_referencing_entries([entry.id])) == 1
        assert await store.clear_entry_references([entry.id]) == 1
        assert await store.list_items_referencing_entries([entry.id]) == []
        assert await cards.delete_entries([entry.id]) == 1

    async def test_delete_items_detaches_transfer_lines(
        self, pool: ConnectionPool, store: SQLiteCustodianSlipStore
    ):
        slip = await store.create_slip(
            _slip("ICS-2025-0001", CustodianSlipItem(property_number="SP-0001"))
        )
        slip_item_id = slip.items[0].id
        transfers = SQLiteTransferStore(pool)
        transfer = await transfers.create_transfer(
            Transfer(
                transfer_number="ITR-2025-0001",
                from_custodian="C1",
                to_custodian="C2",
                date_requested=date(2025, 2, 1),
                items=[TransferItem(property_number="SP-0001", custodian_slip_item_id=slip_item_id)],
            )
        )

        items = await store.list_items_for_item("no-such-id", "SP-0001")
        assert [i.id for i in items] == [slip_item_id]
        assert await store.delete_items([slip_item_id]) == 1

        (line,) = (await transfers.get_transfer(transfer.id)).items
        assert line.custodian_slip_item_id is None
        assert (await store.get_slip(slip.id)).items == []


class TestAuditStore:
    async def test_record_and_list(self, pool: ConnectionPool):
        audit = SQLiteAuditStore(pool)

        saved = await audit.record(
            AuditLogEntry(
                user_id="clerk",
                action="delete",
                table_name="inventory_items",
                record_id="item-1",
                details={"force": True},
            )
        )

        assert saved.id is not None
        (entry,) = await audit.list_for_record("inventory_items", "item-1")
        assert entry.details == {"force": True}
        assert entry.user_id == "clerk"
