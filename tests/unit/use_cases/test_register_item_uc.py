"""Tests for RegisterItemUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from semiprop.application.dto.requests import RegisterItemRequest
from semiprop.application.use_cases.register_item import RegisterItemUseCase
from semiprop.config.settings import CustodySettings
from semiprop.core.entities.inventory import AssignmentStatus
from semiprop.core.entities.property_card import SPCEntry


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    store.create_item.side_effect = lambda item: item.model_copy(update={"id": "item-1"})
    return store


@pytest.fixture
def mock_card_store():
    store = AsyncMock()
    store.create_card.side_effect = lambda card: card.model_copy(update={"id": "card-1"})
    return store


@pytest.fixture
def mock_ledger():
    ledger = AsyncMock()
    ledger.append_entry.side_effect = lambda card_id, entry: SPCEntry(
        id="e-1",
        property_card_id=card_id,
        date=entry.date,
        receipt_qty=entry.receipt_qty,
        unit_cost=entry.unit_cost,
        balance_qty=entry.receipt_qty,
        amount=entry.receipt_qty * entry.unit_cost,
    )
    return ledger


@pytest.fixture
def use_case(mock_inventory_store, mock_card_store, mock_ledger, transactions):
    settings = CustodySettings(default_entity_name="Division Office", default_fund_cluster="01")
    return RegisterItemUseCase(
        mock_inventory_store, mock_card_store, mock_ledger, transactions, settings
    )


class TestRegisterItemUseCase:
    async def test_item_card_and_opening_receipt(self, use_case, mock_ledger):
        request = RegisterItemRequest(
            property_number=" SP-0001 ",
            unit_cost=1500.0,
            quantity=2,
            date_acquired=date(2025, 1, 10),
            reference="PO-2025-0001",
        )

        result = await use_case.execute(request, actor="clerk")

        assert result.item.property_number == "SP-0001"
        assert result.item.assignment_status == AssignmentStatus.AVAILABLE
        assert result.item.total_cost == 3000.0
        assert result.card.entity_name == "Division Office"
        assert result.card.fund_cluster == "01"
        assert result.card.date_acquired == date(2025, 1, 10)

        card_id, entry = mock_ledger.append_entry.call_args[0]
        assert card_id == "card-1"
        assert entry.receipt_qty == 2
        assert entry.unit_cost == 1500.0
        assert entry.reference == "PO-2025-0001"
        assert result.opening_entry.balance_qty == 2

    async def test_without_card(self, use_case, mock_card_store, mock_ledger):
        request = RegisterItemRequest(property_number="SP-0002", create_card=False)

        result = await use_case.execute(request)

        assert result.card is None
        assert result.opening_entry is None
        mock_card_store.create_card.assert_not_awaited()
        mock_ledger.append_entry.assert_not_awaited()

    async def test_request_overrides_card_defaults(self, use_case):
        request = RegisterItemRequest(
            property_number="SP-0003", entity_name="Central School", fund_cluster="05"
        )

        result = await use_case.execute(request)

        assert result.card.entity_name == "Central School"
        assert result.card.fund_cluster == "05"
