"""
End-to-end custody lifecycle of a single item.

Issue to C1, transfer to C2, complete twice, refuse the delete while held,
then release and force-delete it.
"""

from datetime import date

import pytest

from semiprop.core.entities import AssignmentStatus, TransferStatus
from semiprop.core.exceptions import CustodyBlockError
from semiprop.core.services import EntityType


async def _rows_referencing(pool, item_id: str, property_number: str) -> dict[str, int]:
    queries = {
        "custodian_slip_items": (
            "SELECT COUNT(*) FROM custodian_slip_items "
            "WHERE inventory_item_id = ? OR property_number = ?"
        ),
        "transfer_items": (
            "SELECT COUNT(*) FROM transfer_items "
            "WHERE inventory_item_id = ? OR property_number = ?"
        ),
        "property_card_entries": (
            "SELECT COUNT(*) FROM property_card_entries e "
            "LEFT JOIN property_cards c ON c.id = e.property_card_id "
            "WHERE c.inventory_item_id = ? OR e.issue_item_no = ?"
        ),
        "property_cards": (
            "SELECT COUNT(*) FROM property_cards "
            "WHERE inventory_item_id = ? OR property_number = ?"
        ),
    }
    counts = {}
    async with pool.acquire() as conn:
        for table, sql in queries.items():
            cursor = await conn.execute(sql, (item_id, property_number))
            counts[table] = (await cursor.fetchone())[0]
    return counts


async def test_item_lifecycle(pool, services, register_item, issue_slip, make_draft):
    registered = await register_item("SP-0001")
    item_id = registered.item.id
    card_id = registered.card.id

    # 1. Issue to C1
    await issue_slip("C1", "SP-0001")
    assert await services.registry.is_assigned("SP-0001")
    item = await services.inventory_store.get_item(item_id)
    assert item.assignment_status == AssignmentStatus.ASSIGNED

    # 2. Draft and issue the transfer; custody does not move yet
    transfer = await services.workflow.create(make_draft("SP-0001"), actor="clerk")
    assert transfer.transfer_number == "ITR-2025-0001"
    await services.workflow.issue(transfer.id, actor="clerk")
    assert (await services.inventory_store.get_item(item_id)).custodian == "C1"

    # 3. Complete: custody moves and the card records the issue
    before = (await services.ledger.entries(card_id))[-1].balance_qty
    result = await services.workflow.complete(
        "ITR-2025-0001", actor="clerk", completion_date=date(2025, 2, 10)
    )
    assert result.transfer.status == TransferStatus.COMPLETED
    assert (await services.inventory_store.get_item(item_id)).custodian == "C2"
    entries = await services.ledger.entries(card_id)
    issue = entries[-1]
    assert issue.issue_qty == 1
    assert issue.reference == "ITR-2025-0001"
    assert issue.balance_qty == before - 1

    # 4. Completing again is a no-op acknowledgment
    again = await services.workflow.complete("ITR-2025-0001", actor="clerk")
    assert again.already_completed
    assert len(await services.ledger.entries(card_id)) == len(entries)

    # 5. Held items cannot be deleted, forced or not
    for force in (False, True):
        with pytest.raises(CustodyBlockError) as exc_info:
            await services.cleanup.delete(EntityType.INVENTORY_ITEM, "SP-0001", force=force)
        assert exc_info.value.custodian == "C2"

    # 6. Release, then force-delete leaves nothing behind
    await services.registry.release("SP-0001", actor="clerk")
    report = await services.cleanup.delete(
        EntityType.INVENTORY_ITEM, "SP-0001", force=True, actor="clerk"
    )
    assert report.deleted["inventory_items"] == 1
    assert await _rows_referencing(pool, item_id, "SP-0001") == {
        "custodian_slip_items": 0,
        "transfer_items": 0,
        "property_card_entries": 0,
        "property_cards": 0,
    }
    assert await services.transfer_store.get_by_number("ITR-2025-0001") is None
