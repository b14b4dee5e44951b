"""Abstract interface for transfer storage."""

from abc import ABC, abstractmethod

from semiprop.core.entities.transfer import (
    Transfer,
    TransferHistoryEntry,
    TransferItem,
    TransferStatistics,
)


class ITransferStore(ABC):
    """Interface for transfers, transfer items and transfer history."""

    @abstractmethod
    async def create_transfer(self, transfer: Transfer) -> Transfer:
        """
        Insert a transfer with its items.

        Raises DuplicateTransferNumberError on a transfer number collision.
        """
        pass

    @abstractmethod
    async def get_transfer(self, transfer_id: str) -> Transfer | None:
        """Get a transfer with its items."""
        pass

    @abstractmethod
    async def get_by_number(self, transfer_number: str) -> Transfer | None:
        """Get a transfer by transfer number."""
        pass

    @abstractmethod
    async def list_transfer_numbers(self, prefix: str) -> list[str]:
        """List transfer numbers starting with prefix."""
        pass

    @abstractmethod
    async def update_status(self, transfer: Transfer) -> Transfer:
        """Persist status, approval and completion fields."""
        pass

    @abstractmethod
    async def add_history(self, entry: TransferHistoryEntry) -> TransferHistoryEntry:
        """Append a history row."""
        pass

    @abstractmethod
    async def list_history(self, transfer_id: str) -> list[TransferHistoryEntry]:
        """List history rows oldest first."""
        pass

    @abstractmethod
    async def list_open_for_item(self, item_id: str, property_number: str) -> list[Transfer]:
        """List Draft/Issued transfers that carry the item."""
        pass

    @abstractmethod
    async def list_items_for_item(self, item_id: str, property_number: str) -> list[TransferItem]:
        """List transfer items linked by item id or by property number."""
        pass

    @abstractmethod
    async def delete_items(self, transfer_item_ids: list[str]) -> int:
        """Delete transfer items by ID."""
        pass

    @abstractmethod
    async def list_empty(self, transfer_ids: list[str]) -> list[str]:
        """Return the subset of transfer IDs that have no items left."""
        pass

    @abstractmethod
    async def delete_transfer(self, transfer_id: str) -> int:
        """Delete a transfer header with its items and history."""
        pass

    @abstractmethod
    async def statistics(self) -> TransferStatistics:
        """Count transfers by status and by type."""
        pass
