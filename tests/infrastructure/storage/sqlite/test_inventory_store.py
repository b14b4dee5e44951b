"""Tests for SQLite inventory item storage."""

from datetime import date

import pytest

from semiprop.core.entities import AssignmentStatus, InventoryItem
from semiprop.core.exceptions import ValidationError
from semiprop.infrastructure.storage.sqlite import ConnectionPool, SQLiteInventoryStore


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteInventoryStore:
    return SQLiteInventoryStore(pool)


class TestInventoryStore:
    async def test_create_and_get(self, store: SQLiteInventoryStore):
        created = await store.create_item(
            InventoryItem(property_number="SP-0001", unit_cost=250.0, quantity=4)
        )

        assert created.id
        fetched = await store.get_item(created.id)
        assert fetched.property_number == "SP-0001"
        assert fetched.total_cost == 1000.0
        assert fetched.assignment_status == AssignmentStatus.AVAILABLE
        assert await store.get_item_by_property_number("SP-0001") == fetched

    async def test_missing_returns_none(self, store: SQLiteInventoryStore):
        assert await store.get_item("nope") is None
        assert await store.get_item_by_property_number("SP-9999") is None

    async def test_duplicate_property_number(self, store: SQLiteInventoryStore):
        await store.create_item(InventoryItem(property_number="SP-0001"))

        with pytest.raises(ValidationError) as exc_info:
            await store.create_item(InventoryItem(property_number="SP-0001"))

        assert exc_info.value.details["field"] == "property_number"

    async def test_update_custody(self, store: SQLiteInventoryStore):
        item = await store.create_item(InventoryItem(property_number="SP-0001"))
        item.assignment_status = AssignmentStatus.ASSIGNED
        item.custodian = "C1"
        item.assigned_date = date(2025, 1, 15)

        await store.update_item(item)

        fetched = await store.get_item(item.id)
        assert fetched.custodian == "C1"
        assert fetched.assigned_date == date(2025, 1, 15)
        assert fetched.is_under_custody

    async def test_list_by_custodian(self, store: SQLiteInventoryStore):
        for number, custodian in [("SP-0002", "C1"), ("SP-0001", "C1"), ("SP-0003", "C2")]:
            await store.create_item(
                InventoryItem(
                    property_number=number,
                    assignment_status=AssignmentStatus.ASSIGNED,
                    custodian=custodian,
                )
            )

        held = await store.list_by_custodian("C1")

        assert [i.property_number for i in held] == ["SP-0001", "SP-0002"]
        assert len(await store.list_items(limit=2)) == 2

    async def test_delete_reports_rowcount(self, store: SQLiteInventoryStore):
        item = await store.create_item(InventoryItem(property_number="SP-0001"))

        assert await store.delete_item(item.id) == 1
        assert await store.delete_item(item.id) == 0
        assert await store.get_item(item.id) is None
