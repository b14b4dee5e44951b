"""
Item resolution.

Rows that point at an inventory item carry both its id and its property
number, and older rows sometimes only the latter. This module is the one
place that knows the lookup order: stored id first, property number second.
"""

from semiprop.core.entities.inventory import InventoryItem
from semiprop.core.entities.property_card import PropertyCard
from semiprop.core.entities.transfer import TransferItem
from semiprop.core.exceptions import InventoryItemNotFoundError
from semiprop.core.interfaces.inventory_store import IInventoryStore
from semiprop.core.interfaces.property_card_store import IPropertyCardStore


class ItemResolver:
    """Looks up items and their property cards by id, then property number."""

    def __init__(
        self,
        inventory_store: IInventoryStore,
        card_store: IPropertyCardStore | None = None,
    ) -> None:
        self._inventory = inventory_store
        self._cards = card_store

    async def resolve_item(self, id_or_number: str) -> InventoryItem | None:
        if not id_or_number:
            return None
        item = await self._inventory.get_item(id_or_number)
        if item is None:
            item = await self._inventory.get_item_by_property_number(id_or_number)
        return item

    async def require_item(self, id_or_number: str) -> InventoryItem:
        """Like resolve_item, but raise when nothing matches."""
        item = await self.resolve_item(id_or_number)
        if item is None:
            raise InventoryItemNotFoundError(id_or_number)
        return item

    async def resolve_transfer_item(self, transfer_item: TransferItem) -> InventoryItem | None:
        item = None
        if transfer_item.inventory_item_id:
            item = await self._inventory.get_item(transfer_item.inventory_item_id)
        if item is None and transfer_item.property_number:
            item = await self._inventory.get_item_by_property_number(transfer_item.property_number)
        return item

    async def resolve_card(self, item: InventoryItem) -> PropertyCard | None:
        """The item's property card: linked by item id, else by property number."""
        if self._cards is None:
            return None
        card = None
        if item.id:
            card = await self._cards.get_card_by_item_id(item.id)
        if card is None:
            card = await self._cards.get_card_by_property_number(item.property_number)
        return card
