"""Runtime services that keep in-memory state in step with the store."""

from .notifier import CONFIG_CHANGED, ChangeNotifier

__all__ = ["CONFIG_CHANGED", "ChangeNotifier"]
