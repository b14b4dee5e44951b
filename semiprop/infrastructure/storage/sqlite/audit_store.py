"""SQLite implementation of the audit log."""

from semiprop.core.entities.audit import AuditLogEntry
from semiprop.core.interfaces.audit_store import IAuditStore
from semiprop.infrastructure.storage.sqlite.connection import ConnectionPool
from semiprop.infrastructure.storage.sqlite.mapping import AUDIT_LOG


class SQLiteAuditStore(IAuditStore):
    """Append-only audit rows."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    async def record(self, entry: AuditLogEntry) -> AuditLogEntry:
        async with self.pool.transaction() as conn:
            cursor = await conn.execute(AUDIT_LOG.insert_sql(), AUDIT_LOG.insert_params(entry))
            entry.id = cursor.lastrowid
            return entry

    async def list_for_record(self, table_name: str, record_id: str) -> list[AuditLogEntry]:
        async with self.pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM audit_log
                WHERE table_name = ? AND record_id = ?
                ORDER BY id
                """,
                (table_name, record_id),
            )
            return [AUDIT_LOG.from_row(r) for r in await cursor.fetchall()]
