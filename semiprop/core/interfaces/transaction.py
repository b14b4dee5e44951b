"""Abstract interface for transactional units of work."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import Any


class ITransactionManager(ABC):
    """
    Opens atomic units of work against the backing store.

    Nested ``transaction()`` calls made while a unit of work is open join it,
    so a service can call another service without splitting the transaction.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[Any]:
        """Open (or join) a transaction; commit on success, roll back on error."""
        pass

    @abstractmethod
    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run callback once the outermost open transaction commits."""
        pass
