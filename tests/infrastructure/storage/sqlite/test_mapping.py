"""Tests for declarative table mappings."""

from datetime import date

import pytest
from pydantic import BaseModel

from semiprop.core.entities import AssignmentStatus, InventoryItem, TransferStatus
from semiprop.core.exceptions import ConfigurationError
from semiprop.infrastructure.storage.sqlite.mapping import (
    ALL_MAPPINGS,
    AUDIT_LOG,
    INVENTORY_ITEMS,
    PROPERTY_TRANSFERS,
    Column,
    TableMapping,
    validate_mappings,
)


class TestValidation:
    def test_all_mappings_valid(self):
        validate_mappings()

    def test_every_table_mapped_once(self):
        tables = [m.table for m in ALL_MAPPINGS]
        assert len(tables) == len(set(tables)) == 9

    def test_unknown_field_rejected(self):
        class Thing(BaseModel):
            id: str

        mapping = TableMapping("things", Thing, (Column("id"), Column("colour")))
        with pytest.raises(ConfigurationError, match="colour"):
            mapping.validate()

    def test_missing_key_rejected(self):
        class Thing(BaseModel):
            id: str
            name: str

        mapping = TableMapping("things", Thing, (Column("name"),))
        with pytest.raises(ConfigurationError, match="key column"):
            mapping.validate()


class TestStatements:
    def test_insert_skips_generated_key(self):
        sql = AUDIT_LOG.insert_sql()
        assert "(user_id, action, table_name, record_id, details_json, created_at)" in sql

    def test_update_excludes_key_and_created_at(self):
        sql = INVENTORY_ITEMS.update_sql()
        assert sql.endswith("WHERE id = ?")
        assert "created_at" not in sql
        assert "id = ?," not in sql

    def test_update_selected_columns(self):
        assert PROPERTY_TRANSFERS.update_sql(["status"]) == (
            "UPDATE property_transfers SET status = ? WHERE id = ?"
        )


class TestConversion:
    def test_params_convert_enums_and_dates(self):
        item = InventoryItem(
            id="item-1",
            property_number="SP-0001",
            assignment_status=AssignmentStatus.ASSIGNED,
            custodian="C1",
            assigned_date=date(2025, 1, 15),
        )
        params = dict(zip(INVENTORY_ITEMS.column_names, INVENTORY_ITEMS.insert_params(item)))
        assert params["assignment_status"] == "Assigned"
        assert params["condition"] == "Serviceable"
        assert params["assigned_date"] == "2025-01-15"

    def test_from_row_null_assignment_status_kept(self):
        row = {"id": "item-1", "property_number": "SP-0001", "assignment_status": None}
        item = INVENTORY_ITEMS.from_row(row)
        assert item.assignment_status is None

    def test_from_row_null_in_required_column_uses_default(self):
        row = {"id": "item-1", "property_number": "SP-0001", "description": None, "quantity": None}
        item = INVENTORY_ITEMS.from_row(row)
        assert item.description == ""
        assert item.quantity == 1

    def test_legacy_transfer_status(self):
        row = {
            "id": "t-1",
            "transfer_number": "ITR-2024-0001",
            "from_custodian": "C1",
            "to_custodian": "C2",
            "date_requested": "2024-05-01",
            "status": "In Transit",
        }
        transfer = PROPERTY_TRANSFERS.from_row(row)
        assert transfer.status == TransferStatus.ISSUED
        assert transfer.date_requested == date(2024, 5, 1)

    def test_json_details(self):
        row = {
            "id": 1,
            "action": "delete",
            "table_name": "inventory_items",
            "record_id": "item-1",
            "details_json": '{"force": true}',
        }
        entry = AUDIT_LOG.from_row(row)
        assert entry.details == {"force": True}
