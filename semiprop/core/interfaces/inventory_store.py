"""Abstract interface for inventory item storage."""

from abc import ABC, abstractmethod

from semiprop.core.entities.inventory import InventoryItem


class IInventoryStore(ABC):
    """Interface for inventory item persistence."""

    @abstractmethod
    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get inventory item by ID."""
        pass

    @abstractmethod
    async def get_item_by_property_number(self, property_number: str) -> InventoryItem | None:
        """Get inventory item by property number."""
        pass

    @abstractmethod
    async def update_item(self, item: InventoryItem) -> InventoryItem:
        """Update inventory item (condition, status, custody, cost)."""
        pass

    @abstractmethod
    async def list_items(self, limit: int = 100, offset: int = 0) -> list[InventoryItem]:
        """List inventory items with pagination."""
        pass

    @abstractmethod
    async def list_by_custodian(self, custodian: str) -> list[InventoryItem]:
        """List items whose custodian matches exactly."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> int:
        """Delete an item row; returns the number of rows affected."""
        pass
