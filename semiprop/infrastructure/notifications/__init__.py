"""Change notification publishers."""

from semiprop.infrastructure.notifications.logging_notifier import LoggingChangeNotifier

__all__ = ["LoggingChangeNotifier"]
