"""Tests for the custody exception hierarchy."""

import pytest

from semiprop.core.exceptions import (
    AssignmentInvariantError,
    CascadeDeleteError,
    ConcurrentDeleteError,
    ConflictError,
    CustodyBlockError,
    CustodyChangedError,
    DatabaseError,
    DivergentCompletionError,
    DuplicateTransferNumberError,
    EntityNotFoundError,
    InvalidTransitionError,
    InvariantViolationError,
    InventoryItemNotFoundError,
    ItemNotAssignableError,
    OpenTransferError,
    PropertyError,
    ReferentialBlockError,
    SlipNumberAllocationError,
    StorageError,
    TransferNumberAllocationError,
    TransferValidationError,
    ValidationError,
)


class TestPropertyError:
    def test_defaults_code_to_class_name(self):
        err = PropertyError("boom")
        assert err.code == "PropertyError"
        assert err.details == {}
        assert str(err) == "boom"

    def test_to_dict(self):
        err = PropertyError("boom", code="X", details={"a": 1})
        assert err.to_dict() == {"error": "X", "message": "boom", "details": {"a": 1}}


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc, parent",
        [
            (TransferValidationError({"reason": "required"}), ValidationError),
            (ItemNotAssignableError("SP-1", "Lost", "Active"), ConflictError),
            (CustodyChangedError("SP-1", "C1", "C3"), ConflictError),
            (DuplicateTransferNumberError("ITR-2025-0001"), ConflictError),
            (ConcurrentDeleteError("inventory_items", "x", 0), ConflictError),
            (OpenTransferError("SP-1", ["ITR-2025-0001"]), InvariantViolationError),
            (InvalidTransitionError("ITR-2025-0001", "Completed", "Draft"), InvariantViolationError),
            (DivergentCompletionError("ITR-2025-0001", ["SP-1"]), InvariantViolationError),
            (AssignmentInvariantError("SP-1", "Assigned", None), InvariantViolationError),
            (CustodyBlockError("x", "SP-1", "C2"), ReferentialBlockError),
            (DatabaseError("insert", "locked"), StorageError),
            (InventoryItemNotFoundError("SP-1"), EntityNotFoundError),
            (CascadeDeleteError("inventory_item", "x", "locked", []), StorageError),
            (TransferNumberAllocationError(5, "ITR-2025-0009"), StorageError),
        ],
    )
    def test_families(self, exc, parent):
        assert isinstance(exc, parent)
        assert isinstance(exc, PropertyError)


class TestMessages:
    def test_transfer_validation_collects_all_errors(self):
        err = TransferValidationError({"reason": "required", "items": "at least one"})
        assert err.errors == {"reason": "required", "items": "at least one"}
        assert err.details["errors"] == err.errors
        assert "reason: required" in err.message
        assert "items: at least one" in err.message

    def test_custody_block_names_custodian(self):
        err = CustodyBlockError("item-1", "SP-0001", "C2")
        assert "C2" in err.message
        assert err.code == "CUSTODY_BLOCK"
        assert err.custodian == "C2"
        assert err.blockers[0]["table"] == "inventory_items"

    def test_referential_block_lists_reasons(self):
        err = ReferentialBlockError(
            "inventory_item",
            "item-1",
            [{"table": "transfer_items", "record_id": "t1", "reason": "listed on transfer ITR-2025-0001"}],
        )
        assert "ITR-2025-0001" in err.message
        assert err.details["blockers"][0]["record_id"] == "t1"

    def test_not_found_code(self):
        err = InventoryItemNotFoundError("SP-404")
        assert err.code == "INVENTORY_ITEM_NOT_FOUND"
        assert err.details["key"] == "SP-404"

    def test_allocation_error_codes(self):
        assert TransferNumberAllocationError(5, "ITR-2025-0005").code == "TRANSFER_NUMBER_EXHAUSTED"
        assert SlipNumberAllocationError(5, "ICS-2025-0005").code == "CUSTODIAN_SLIP_NUMBER_EXHAUSTED"

    def test_validation_error_truncates_value(self):
        err = ValidationError("description", "too long", "x" * 500)
        assert len(err.details["value"]) == 100
