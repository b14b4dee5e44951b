"""Audit rows and post-commit change notifications for state changes."""

from typing import Any

from semiprop.core.entities.audit import AuditLogEntry, ChangeAction, ChangeEvent
from semiprop.core.interfaces.audit_store import IAuditStore
from semiprop.core.interfaces.notifier import IChangeNotifier
from semiprop.core.interfaces.transaction import ITransactionManager


class ChangeRecorder:
    """
    Writes an audit row inside the caller's transaction and queues a change
    event that is published only once that transaction commits.

    Both collaborators are optional; without them recording is a no-op.
    """

    def __init__(
        self,
        transactions: ITransactionManager,
        audit_store: IAuditStore | None = None,
        notifier: IChangeNotifier | None = None,
    ) -> None:
        self._tx = transactions
        self._audit = audit_store
        self._notifier = notifier

    async def record(
        self,
        actor: str,
        action: ChangeAction,
        table: str,
        record_id: str,
        **details: Any,
    ) -> None:
        if self._audit is not None:
            await self._audit.record(
                AuditLogEntry(
                    user_id=actor or "",
                    action=action.value,
                    table_name=table,
                    record_id=record_id,
                    details=details,
                )
            )

        if self._notifier is not None:
            notifier = self._notifier
            event = ChangeEvent(table=table, record_id=record_id, action=action)

            async def publish() -> None:
                await notifier.notify([event])

            self._tx.after_commit(publish)
