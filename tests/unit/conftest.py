"""Fixtures for unit tests that run services against mocked stores."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import pytest

from semiprop.core.interfaces.transaction import ITransactionManager


class FakeTransactions(ITransactionManager):
    """Counts units of work and runs after-commit callbacks on exit."""

    def __init__(self) -> None:
        self.opened = 0
        self.rolled_back = 0
        self._depth = 0
        self._pending: list[Callable[[], Awaitable[None]]] = []

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        self._depth += 1
        if self._depth == 1:
            self.opened += 1
        try:
            yield None
        except BaseException:
            if self._depth == 1:
                self.rolled_back += 1
                self._pending.clear()
            raise
        finally:
            self._depth -= 1
        if self._depth == 0:
            pending, self._pending = self._pending, []
            for callback in pending:
                await callback()

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._pending.append(callback)


@pytest.fixture
def transactions() -> FakeTransactions:
    return FakeTransactions()
