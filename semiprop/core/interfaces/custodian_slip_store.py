"""Abstract interface for custodian slip storage."""

from abc import ABC, abstractmethod

from semiprop.core.entities.custodian_slip import CustodianSlip, CustodianSlipItem


class ICustodianSlipStore(ABC):
    """Interface for custodian slips and slip items."""

    @abstractmethod
    async def create_slip(self, slip: CustodianSlip) -> CustodianSlip:
        """Create a slip together with its items."""
        pass

    @abstractmethod
    async def get_slip(self, slip_id: str) -> CustodianSlip | None:
        """Get a slip with its items."""
        pass

    @abstractmethod
    async def list_slip_numbers(self, prefix: str) -> list[str]:
        """List slip numbers starting with prefix."""
        pass

    @abstractmethod
    async def list_items_for_item(self, item_id: str, property_number: str) -> list[CustodianSlipItem]:
        """List slip items linked by item id or by property number."""
        pass

    @abstractmethod
    async def list_items_referencing_entries(self, entry_ids: list[str]) -> list[CustodianSlipItem]:
        """List slip items pointing at any of the given ledger entries."""
        pass

    @abstractmethod
    async def clear_entry_references(self, entry_ids: list[str]) -> int:
        """Null out property_card_entry_id for the given entries."""
        pass

    @abstractmethod
    async def delete_items(self, slip_item_ids: list[str]) -> int:
        """Delete slip items; slips themselves are kept."""
        pass
