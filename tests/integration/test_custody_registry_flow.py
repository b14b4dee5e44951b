"""Custody registry and slip issuance against a real database."""

from datetime import date

import pytest

from semiprop.core.entities import AssignmentStatus, ChangeAction, ItemCondition
from semiprop.core.exceptions import (
    CustodyChangedError,
    InventoryItemNotFoundError,
    ItemNotAssignableError,
    OpenTransferError,
    ValidationError,
)


class TestAssignAndRelease:
    async def test_assign_then_release(self, services, register_item):
        item = (await register_item("SP-0001")).item

        await services.registry.assign(item.id, " C1 ", "Teacher I", date(2025, 1, 15))

        assert await services.registry.is_assigned(item.id)
        assert not await services.registry.is_available("SP-0001")
        stored = await services.inventory_store.get_item(item.id)
        assert stored.custodian == "C1"
        assert stored.assignment_status == AssignmentStatus.ASSIGNED

        await services.registry.release("SP-0001")

        stored = await services.inventory_store.get_item(item.id)
        assert stored.custodian is None
        assert stored.assigned_date is None
        assert stored.assignment_status == AssignmentStatus.AVAILABLE
        assert await services.registry.is_available(item.id)

    async def test_reassign_same_custodian_refreshes_date(self, services, register_item):
        item = (await register_item("SP-0001")).item
        await services.registry.assign(item.id, "C1", "Teacher I", date(2025, 1, 15))

        refreshed = await services.registry.assign(item.id, "C1", None, date(2025, 3, 1))

        assert refreshed.assigned_date == date(2025, 3, 1)
        assert refreshed.custodian_position == "Teacher I"

    async def test_unserviceable_item_rejected(self, services, register_item):
        item = (await register_item("SP-0001", condition=ItemCondition.FOR_REPAIR)).item

        with pytest.raises(ItemNotAssignableError):
            await services.registry.assign(item.id, "C1", None, date(2025, 1, 15))

        assert not await services.registry.is_assigned(item.id)

    async def test_expected_custodian_guard(self, services, register_item):
        item = (await register_item("SP-0001")).item
        await services.registry.assign(item.id, "C1", None, date(2025, 1, 15))

        with pytest.raises(CustodyChangedError):
            await services.registry.assign(
                item.id, "C3", None, date(2025, 2, 1), expected_custodian="C2"
            )

        assert (await services.inventory_store.get_item(item.id)).custodian == "C1"

    async def test_blank_custodian_rejected(self, services, register_item):
        item = (await register_item("SP-0001")).item
        with pytest.raises(ValidationError):
            await services.registry.assign(item.id, "  ", None, date(2025, 1, 15))

    async def test_unknown_item(self, services):
        with pytest.raises(InventoryItemNotFoundError):
            await services.registry.release("SP-0404")

    async def test_release_blocked_by_open_transfer(
        self, services, register_item, issue_slip, make_draft
    ):
        await register_item("SP-0001")
        await issue_slip("C1", "SP-0001")
        transfer = await services.workflow.create(make_draft("SP-0001"))

        with pytest.raises(OpenTransferError) as exc_info:
            await services.registry.release("SP-0001")

        assert exc_info.value.details["transfer_numbers"] == [transfer.transfer_number]

    async def test_legacy_row_without_flag_is_available(self, pool, services, register_item):
        item = (await register_item("SP-0001")).item
        async with pool.transaction() as conn:
            await conn.execute(
                "UPDATE inventory_items SET assignment_status = NULL WHERE id = ?", (item.id,)
            )

        assert await services.registry.is_available(item.id)
        assigned = await services.registry.assign(item.id, "C1", None, date(2025, 1, 15))
        assert assigned.assignment_status == AssignmentStatus.ASSIGNED


class TestIssueSlip:
    async def test_slip_assigns_items(self, services, register_item, issue_slip):
        await register_item("SP-0001")
        await register_item("SP-0002")

        result = await issue_slip("C1", "SP-0001", "SP-0002")

        assert result.slip.slip_number == "ICS-2025-0001"
        assert [i.custodian for i in result.assigned] == ["C1", "C1"]
        holdings = await services.registry.list_holdings("C1")
        assert [i.property_number for i in holdings] == ["SP-0001", "SP-0002"]
        assert len((await services.slip_store.get_slip(result.slip.id)).items) == 2

    async def test_slip_writes_no_ledger_entry(self, services, register_item, issue_slip):
        card = (await register_item("SP-0001")).card

        await issue_slip("C1", "SP-0001")

        assert len(await services.ledger.entries(card.id)) == 1

    async def test_held_item_cannot_be_issued_again(self, services, register_item, issue_slip):
        await register_item("SP-0001")
        await register_item("SP-0002")
        await issue_slip("C1", "SP-0001")

        with pytest.raises(CustodyChangedError):
            await issue_slip("C2", "SP-0002", "SP-0001")

        second = await services.inventory_store.get_item_by_property_number("SP-0002")
        assert second.custodian is None
        assert await services.slip_store.list_slip_numbers("ICS-") == ["ICS-2025-0001"]

    async def test_audit_and_notifications(self, services, notifier, register_item, issue_slip):
        item = (await register_item("SP-0001")).item
        notifier.events.clear()

        await issue_slip("C1", "SP-0001")

        audit = await services.audit_store.list_for_record("inventory_items", item.id)
        assert audit[-1].details["operation"] == "assign"
        assert audit[-1].user_id == "clerk"
        assert {(e.table, e.action) for e in notifier.events} == {
            ("inventory_items", ChangeAction.UPDATE),
            ("custodian_slips", ChangeAction.CREATE),
        }
