"""
Document number allocation.

Numbers look like ``ITR-2025-0007``: prefix, year, zero-padded sequence.
The next sequence is one past the highest seen either in storage or by
this allocator, and inserts that lose a uniqueness race are retried with a
fresh number a bounded number of times.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from semiprop.config import get_logger
from semiprop.core.exceptions import ConflictError, NumberAllocationError

logger = get_logger(__name__)

T = TypeVar("T")


class DocumentNumberAllocator:
    """Sequential per-year document numbers with optimistic retry."""

    def __init__(
        self,
        prefix: str,
        list_numbers: Callable[[str], Awaitable[list[str]]],
        width: int = 4,
        max_attempts: int = 5,
        exhausted_error: type[NumberAllocationError] = NumberAllocationError,
    ) -> None:
        self.prefix = prefix
        self.width = width
        self.max_attempts = max_attempts
        self._list_numbers = list_numbers
        self._exhausted_error = exhausted_error
        self._known: set[str] = set()

    def stem(self, year: int) -> str:
        return f"{self.prefix}-{year}-"

    def sequence_of(self, number: str, year: int) -> int | None:
        """Sequence part of a number issued for ``year``, or None."""
        stem = self.stem(year)
        if not number.startswith(stem):
            return None
        tail = number[len(stem):]
        return int(tail) if tail.isdigit() else None

    def remember(self, number: str) -> None:
        self._known.add(number)

    async def next_number(self, year: int) -> str:
        stem = self.stem(year)
        stored = await self._list_numbers(stem)
        sequences = [
            seq
            for seq in (self.sequence_of(n, year) for n in [*stored, *self._known])
            if seq is not None
        ]
        number = f"{stem}{max(sequences, default=0) + 1:0{self.width}d}"
        self._known.add(number)
        return number

    async def insert_with_number(
        self,
        year: int,
        insert: Callable[[str], Awaitable[T]],
        conflict: type[ConflictError],
    ) -> T:
        """
        Call ``insert`` with freshly generated numbers until one is accepted.

        ``insert`` signals a taken number by raising ``conflict``; after
        ``max_attempts`` losses the allocator gives up.
        """
        last = ""

        def log_conflict(retry_state: RetryCallState) -> None:
            logger.warning(
                "document_number_conflict",
                number=last,
                attempt=retry_state.attempt_number,
                max_attempts=self.max_attempts,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type(conflict),
            before_sleep=log_conflict,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    last = await self.next_number(year)
                    return await insert(last)
        except RetryError as e:
            logger.error("document_number_exhausted", prefix=self.prefix, last_number=last)
            raise self._exhausted_error(self.max_attempts, last) from e.last_attempt.exception()
