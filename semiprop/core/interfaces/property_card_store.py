"""Abstract interface for property card and ledger entry storage."""

from abc import ABC, abstractmethod

from semiprop.core.entities.property_card import PropertyCard, SPCEntry


class IPropertyCardStore(ABC):
    """Interface for property cards and their entries."""

    # Card operations
    @abstractmethod
    async def create_card(self, card: PropertyCard) -> PropertyCard:
        """Create a new property card."""
        pass

    @abstractmethod
    async def get_card(self, card_id: str) -> PropertyCard | None:
        """Get property card by ID."""
        pass

    @abstractmethod
    async def get_card_by_item_id(self, item_id: str) -> PropertyCard | None:
        """Get the card linked to an inventory item id."""
        pass

    @abstractmethod
    async def get_card_by_property_number(self, property_number: str) -> PropertyCard | None:
        """Get the card carrying a property number."""
        pass

    @abstractmethod
    async def list_cards_for_item(self, item_id: str, property_number: str) -> list[PropertyCard]:
        """List cards linked by item id or by property number."""
        pass

    @abstractmethod
    async def delete_card(self, card_id: str) -> int:
        """Delete a card row; returns the number of rows affected."""
        pass

    # Entry operations
    @abstractmethod
    async def add_entry(self, entry: SPCEntry) -> SPCEntry:
        """Insert an entry, assigning the next line number on its card."""
        pass

    @abstractmethod
    async def get_entry(self, entry_id: str) -> SPCEntry | None:
        """Get a ledger entry by ID."""
        pass

    @abstractmethod
    async def list_entries(self, card_id: str) -> list[SPCEntry]:
        """List entries of a card in ledger order (date, line_no)."""
        pass

    @abstractmethod
    async def update_entry(self, entry: SPCEntry) -> SPCEntry:
        """Rewrite all stored fields of an entry."""
        pass

    @abstractmethod
    async def update_balances(self, entry_id: str, balance_qty: int, amount: float) -> None:
        """Rewrite the computed columns of an entry."""
        pass

    @abstractmethod
    async def find_entry(
        self, card_id: str, reference: str, issue_item_no: str
    ) -> SPCEntry | None:
        """Find an entry on a card by reference and issued item number."""
        pass

    @abstractmethod
    async def list_entries_by_issue_item(self, issue_item_no: str) -> list[SPCEntry]:
        """List entries on any card whose issued item number matches."""
        pass

    @abstractmethod
    async def delete_entries(self, entry_ids: list[str]) -> int:
        """Delete entries by ID; returns the number of rows affected."""
        pass
