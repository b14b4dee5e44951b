"""Abstract interface for change notifications."""

from abc import ABC, abstractmethod

from semiprop.core.entities.audit import ChangeEvent


class IChangeNotifier(ABC):
    """
    Fire-and-forget feed of committed changes.

    Consumers re-read authoritative state; no delivery or ordering
    guarantee is implied.
    """

    @abstractmethod
    async def notify(self, events: list[ChangeEvent]) -> None:
        """Publish events for one committed transaction."""
        pass
