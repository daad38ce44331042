"""Persistent store for configuration, modules and hooks."""

from .config_store import ConfigStore, latest_session_db, session_db_path
from .types import ConfigEntry, ConfigValueType

__all__ = [
    "ConfigEntry",
    "ConfigStore",
    "ConfigValueType",
    "latest_session_db",
    "session_db_path",
]
