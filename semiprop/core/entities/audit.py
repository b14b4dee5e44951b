"""Audit log and change notification entities."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ChangeAction(str, Enum):
    """Kind of change applied to a record."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditLogEntry(BaseModel):
    """Attributed record of a state-changing operation."""

    id: int | None = None
    user_id: str = ""
    action: str
    table_name: str
    record_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ChangeEvent(BaseModel):
    """Notification that a committed transaction touched a record."""

    table: str
    record_id: str
    action: ChangeAction
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
