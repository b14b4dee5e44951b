"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from pathlib import Path

import pytest

from semiprop.application.dto.requests import (
    IssueSlipRequest,
    RegisterItemRequest,
    SlipLineRequest,
)
from semiprop.application.services import CustodyServices, build_custody_services
from semiprop.application.use_cases import IssueSlipResult, RegisterItemResult
from semiprop.config import Settings, reset_settings
from semiprop.core.entities import ChangeEvent, TransferDraft, TransferItem
from semiprop.core.interfaces import IChangeNotifier
from semiprop.infrastructure.storage.sqlite import ConnectionPool
from semiprop.infrastructure.storage.sqlite.migrations import initialize_database


class RecordingNotifier(IChangeNotifier):
    """Keeps every published change event."""

    def __init__(self) -> None:
        self.events: list[ChangeEvent] = []

    async def notify(self, events: list[ChangeEvent]) -> None:
        self.events.extend(events)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point settings at a temp data dir and drop the cached instance."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert results and all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def pool(migrated_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Initialized pool over the migrated database."""
    pool = ConnectionPool(migrated_db, pool_size=2, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def services(
    pool: ConnectionPool, settings: Settings, notifier: RecordingNotifier
) -> CustodyServices:
    """Fully wired custody services over a fresh database."""
    return build_custody_services(pool, settings, notifier)


@pytest.fixture
def register_item(services: CustodyServices) -> Callable[..., Awaitable[RegisterItemResult]]:
    """Register an item with a property card and opening receipt."""

    async def _register(property_number: str = "SP-0001", **overrides) -> RegisterItemResult:
        fields = {
            "property_number": property_number,
            "description": "Ergonomic office chair",
            "unit_cost": 1500.0,
            "quantity": 1,
            "date_acquired": date(2025, 1, 10),
            "reference": "PO-2025-0001",
            "entity_name": "Division Office",
            "fund_cluster": "01",
        }
        fields.update(overrides)
        return await services.register_item.execute(RegisterItemRequest(**fields), actor="clerk")

    return _register


@pytest.fixture
def issue_slip(services: CustodyServices) -> Callable[..., Awaitable[IssueSlipResult]]:
    """Issue items on a custodian slip."""

    async def _issue(
        custodian: str, *items: str, date_issued: date = date(2025, 1, 15)
    ) -> IssueSlipResult:
        request = IssueSlipRequest(
            custodian_name=custodian,
            designation="Teacher I",
            office="Grade 5",
            date_issued=date_issued,
            issued_by="Supply Officer",
            items=[SlipLineRequest(item=item) for item in items],
        )
        return await services.issue_slip.execute(request, actor="clerk")

    return _issue


@pytest.fixture
def make_draft() -> Callable[..., TransferDraft]:
    """Build a valid transfer draft for the given property numbers."""

    def _draft(*property_numbers: str, **overrides) -> TransferDraft:
        fields = {
            "entity_name": "Division Office",
            "fund_cluster": "01",
            "from_custodian": "C1",
            "from_position": "Teacher I",
            "to_custodian": "C2",
            "to_position": "Teacher II",
            "reason": "Reassignment to new section",
            "date_requested": date(2025, 2, 1),
            "items": [TransferItem(property_number=pn) for pn in property_numbers],
        }
        fields.update(overrides)
        return TransferDraft(**fields)

    return _draft
