"""Abstract interface for the audit log."""

from abc import ABC, abstractmethod

from semiprop.core.entities.audit import AuditLogEntry


class IAuditStore(ABC):
    """Interface for audit log persistence."""

    @abstractmethod
    async def record(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Append an audit row."""
        pass

    @abstractmethod
    async def list_for_record(self, table_name: str, record_id: str) -> list[AuditLogEntry]:
        """History of one record, oldest first."""
        pass
