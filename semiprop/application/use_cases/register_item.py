"""Register Item Use Case: intake with optional property card."""

from dataclasses import dataclass
from datetime import date

from semiprop.application.dto.requests import RegisterItemRequest
from semiprop.config import get_logger
from semiprop.config.settings import CustodySettings
from semiprop.core.entities.audit import ChangeAction
from semiprop.core.entities.inventory import AssignmentStatus, InventoryItem
from semiprop.core.entities.property_card import LedgerEntryInput, PropertyCard, SPCEntry
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.core.interfaces.property_card_store import IPropertyCardStore
from semiprop.core.interfaces.transaction import ITransactionManager
from semiprop.core.services.change_recorder import ChangeRecorder
from semiprop.core.services.ledger_engine import LedgerEngine

logger = get_logger(__name__)


@dataclass
class RegisterItemResult:
    """Result of registering an item."""

    item: InventoryItem
    card: PropertyCard | None = None
    opening_entry: SPCEntry | None = None


class RegisterItemUseCase:
    """Create an inventory item and, optionally, its property card."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        card_store: IPropertyCardStore,
        ledger: LedgerEngine,
        transactions: ITransactionManager,
        settings: CustodySettings | None = None,
        recorder: ChangeRecorder | None = None,
    ):
        self._inventory = inventory_store
        self._cards = card_store
        self._ledger = ledger
        self._tx = transactions
        self._settings = settings or CustodySettings()
        self._recorder = recorder or ChangeRecorder(transactions)

    async def execute(self, request: RegisterItemRequest, actor: str = "") -> RegisterItemResult:
        """Execute item intake."""
        logger.info("register_item_started", property_number=request.property_number)

        acquired = request.date_acquired or date.today()
        create_card = (
            request.create_card
            if request.create_card is not None
            else self._settings.create_card_on_intake
        )

        async with self._tx.transaction():
            # 1. Inventory item, unassigned
            item = await self._inventory.create_item(
                InventoryItem(
                    property_number=request.property_number.strip(),
                    description=request.description,
                    condition=request.condition,
                    status=request.status,
                    unit_cost=request.unit_cost,
                    quantity=request.quantity,
                    assignment_status=AssignmentStatus.AVAILABLE,
                )
            )
            await self._recorder.record(
                actor,
                ChangeAction.CREATE,
                "inventory_items",
                item.id,
                property_number=item.property_number,
            )
            result = RegisterItemResult(item=item)

            if create_card:
                # 2. Property card
                card = await self._cards.create_card(
                    PropertyCard(
                        inventory_item_id=item.id,
                        property_number=item.property_number,
                        entity_name=request.entity_name or self._settings.default_entity_name,
                        fund_cluster=request.fund_cluster or self._settings.default_fund_cluster,
                        description=item.description,
                        date_acquired=acquired,
                    )
                )
                # 3. Opening receipt
                entry = await self._ledger.append_entry(
                    card.id,
                    LedgerEntryInput(
                        date=acquired,
                        reference=request.reference,
                        receipt_qty=item.quantity,
                        unit_cost=item.unit_cost,
                    ),
                )
                await self._recorder.record(
                    actor, ChangeAction.CREATE, "property_cards", card.id,
                    property_number=card.property_number,
                )
                result.card = card
                result.opening_entry = entry

        logger.info(
            "register_item_complete",
            item_id=item.id,
            property_number=item.property_number,
            card_id=result.card.id if result.card else None,
        )
        return result
