"""Change notifier that emits structured log events."""

from semiprop.config import get_logger
from semiprop.core.entities.audit import ChangeEvent
from semiprop.core.interfaces.notifier import IChangeNotifier

logger = get_logger(__name__)


class LoggingChangeNotifier(IChangeNotifier):
    """Publishes committed changes to the log stream."""

    async def notify(self, events: list[ChangeEvent]) -> None:
        for event in events:
            logger.info(
                "record_changed",
                table=event.table,
                record_id=event.record_id,
                action=event.action.value,
            )
