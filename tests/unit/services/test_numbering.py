"""Tests for DocumentNumberAllocator."""

from unittest.mock import AsyncMock

import pytest

from semiprop.core.exceptions import (
    DuplicateTransferNumberError,
    TransferNumberAllocationError,
)
from semiprop.core.services.numbering import DocumentNumberAllocator


@pytest.fixture
def list_numbers():
    return AsyncMock(return_value=[])


@pytest.fixture
def allocator(list_numbers):
    return DocumentNumberAllocator(
        "ITR",
        list_numbers,
        max_attempts=3,
        exhausted_error=TransferNumberAllocationError,
    )


class TestNextNumber:
    async def test_first_number_of_year(self, allocator, list_numbers):
        assert await allocator.next_number(2025) == "ITR-2025-0001"
        list_numbers.assert_awaited_with("ITR-2025-")

    async def test_one_past_highest_stored(self, allocator, list_numbers):
        list_numbers.return_value = ["ITR-2025-0003", "ITR-2025-0010", "ITR-2025-0007"]
        assert await allocator.next_number(2025) == "ITR-2025-0011"

    async def test_ignores_malformed_numbers(self, allocator, list_numbers):
        list_numbers.return_value = ["ITR-2025-0002", "ITR-2025-MANUAL", "ITR-2025-"]
        assert await allocator.next_number(2025) == "ITR-2025-0003"

    async def test_known_numbers_count(self, allocator, list_numbers):
        """Numbers handed out earlier are not reused even if never stored."""
        first = await allocator.next_number(2025)
        second = await allocator.next_number(2025)
        assert (first, second) == ("ITR-2025-0001", "ITR-2025-0002")

    async def test_remembered_numbers_count(self, allocator):
        allocator.remember("ITR-2025-0042")
        assert await allocator.next_number(2025) == "ITR-2025-0043"

    async def test_years_are_independent(self, allocator):
        allocator.remember("ITR-2024-0099")
        assert await allocator.next_number(2025) == "ITR-2025-0001"

    async def test_width(self, list_numbers):
        allocator = DocumentNumberAllocator("ICS", list_numbers, width=6)
        assert await allocator.next_number(2025) == "ICS-2025-000001"

    def test_sequence_of(self, allocator):
        assert allocator.sequence_of("ITR-2025-0012", 2025) == 12
        assert allocator.sequence_of("ITR-2024-0012", 2025) is None
        assert allocator.sequence_of("ICS-2025-0012", 2025) is None


class TestInsertWithNumber:
    async def test_retries_on_conflict(self, allocator, list_numbers):
        list_numbers.return_value = ["ITR-2025-0001"]
        attempts = []

        async def insert(number: str) -> str:
            attempts.append(number)
            if len(attempts) == 1:
                raise DuplicateTransferNumberError(number)
            return number

        result = await allocator.insert_with_number(2025, insert, DuplicateTransferNumberError)

        assert attempts == ["ITR-2025-0002", "ITR-2025-0003"]
        assert result == "ITR-2025-0003"

    async def test_exhausted_after_max_attempts(self, allocator):
        attempts = []

        async def insert(number: str) -> str:
            attempts.append(number)
            raise DuplicateTransferNumberError(number)

        with pytest.raises(TransferNumberAllocationError) as exc_info:
            await allocator.insert_with_number(2025, insert, DuplicateTransferNumberError)

        assert len(attempts) == 3
        assert exc_info.value.details == {"attempts": 3, "last_number": "ITR-2025-0003"}

    async def test_other_errors_propagate(self, allocator):
        insert = AsyncMock(side_effect=RuntimeError("disk full"))

        with pytest.raises(RuntimeError):
            await allocator.insert_with_number(2025, insert, DuplicateTransferNumberError)
        assert insert.await_count == 1
