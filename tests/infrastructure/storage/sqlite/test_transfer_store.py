"""Tests for SQLite transfer storage."""

from datetime import date

import pytest

from semiprop.core.entities import (
    Transfer,
    TransferHistoryEntry,
    TransferItem,
    TransferStatus,
    TransferType,
)
from semiprop.core.exceptions import DuplicateTransferNumberError
from semiprop.infrastructure.storage.sqlite import ConnectionPool, SQLiteTransferStore


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteTransferStore:
    return SQLiteTransferStore(pool)


def _transfer(number: str, *property_numbers: str, **fields) -> Transfer:
    return Transfer(
        transfer_number=number,
        from_custodian="C1",
        to_custodian="C2",
        date_requested=date(2025, 2, 1),
        items=[TransferItem(property_number=pn) for pn in property_numbers],
        **fields,
    )


class TestTransferStore:
    async def test_create_and_load_with_items(self, store: SQLiteTransferStore):
        created = await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001", "SP-0002"))

        loaded = await store.get_transfer(created.id)

        assert loaded.status == TransferStatus.DRAFT
        assert [i.property_number for i in loaded.items] == ["SP-0001", "SP-0002"]
        assert all(i.transfer_id == created.id for i in loaded.items)
        assert (await store.get_by_number("ITR-2025-0001")).id == created.id
        assert await store.get_by_number("ITR-2025-0404") is None

    async def test_duplicate_number(self, store: SQLiteTransferStore):
        await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001"))

        with pytest.raises(DuplicateTransferNumberError):
            await store.create_transfer(_transfer("ITR-2025-0001", "SP-0002"))

        assert await store.list_transfer_numbers("ITR-2025-") == ["ITR-2025-0001"]

    async def test_update_status(self, store: SQLiteTransferStore):
        transfer = await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001"))
        transfer.status = TransferStatus.ISSUED
        transfer.approved_by = "Principal"
        transfer.date_approved = date(2025, 2, 3)

        await store.update_status(transfer)

        loaded = await store.get_transfer(transfer.id)
        assert loaded.status == TransferStatus.ISSUED
        assert loaded.approved_by == "Principal"
        assert loaded.date_approved == date(2025, 2, 3)

    async def test_history_oldest_first(self, store: SQLiteTransferStore):
        transfer = await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001"))
        for status, action in [(TransferStatus.DRAFT, "created"), (TransferStatus.ISSUED, "issued")]:
            await store.add_history(
                TransferHistoryEntry(transfer_id=transfer.id, status=status, action=action)
            )

        history = await store.list_history(transfer.id)

        assert [h.action for h in history] == ["created", "issued"]
        assert history[0].id < history[1].id

    async def test_open_transfers_include_legacy_status(
        self, pool: ConnectionPool, store: SQLiteTransferStore
    ):
        legacy = await store.create_transfer(_transfer("ITR-2024-0007", "SP-0001"))
        closed = await store.create_transfer(
            _transfer("ITR-2024-0008", "SP-0001", status=TransferStatus.COMPLETED)
        )
        await store.create_transfer(_transfer("ITR-2024-0009", "SP-0002"))
        async with pool.transaction() as conn:
            await conn.execute(
                "UPDATE property_transfers SET status = 'In Transit' WHERE id = ?", (legacy.id,)
            )

        open_transfers = await store.list_open_for_item("no-such-id", "SP-0001")

        assert [t.transfer_number for t in open_transfers] == ["ITR-2024-0007"]
        assert open_transfers[0].status == TransferStatus.ISSUED
        assert closed.id not in {t.id for t in open_transfers}

    async def test_empty_transfers_and_delete(self, store: SQLiteTransferStore):
        keep = await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001", "SP-0002"))
        drain = await store.create_transfer(_transfer("ITR-2025-0002", "SP-0001"))

        items = await store.list_items_for_item("no-such-id", "SP-0001")
        assert len(items) == 2
        assert await store.delete_items([i.id for i in items]) == 2

        assert await store.list_empty([keep.id, drain.id]) == [drain.id]
        await store.add_history(
            TransferHistoryEntry(transfer_id=drain.id, status=TransferStatus.DRAFT, action="created")
        )
        assert await store.delete_transfer(drain.id) == 1
        assert await store.get_transfer(drain.id) is None

    async def test_statistics(self, pool: ConnectionPool, store: SQLiteTransferStore):
        await store.create_transfer(_transfer("ITR-2025-0001", "SP-0001"))
        await store.create_transfer(
            _transfer("ITR-2025-0002", "SP-0002", transfer_type=TransferType.DONATION)
        )
        legacy = await store.create_transfer(_transfer("ITR-2024-0001", "SP-0003"))
        async with pool.transaction() as conn:
            await conn.execute(
                "UPDATE property_transfers SET status = 'Pending' WHERE id = ?", (legacy.id,)
            )

        stats = await store.statistics()

        assert stats.total == 3
        assert stats.by_status == {"Draft": 3}
        assert stats.by_type == {"Reassignment": 2, "Donation": 1}
