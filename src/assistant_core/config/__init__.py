"""Runtime settings for the assistant core."""

from .env_manager import EnvManager
from .schemas import DebugSettings, RuntimeSettings
from .settings_manager import SettingsManager

__all__ = ["DebugSettings", "EnvManager", "RuntimeSettings", "SettingsManager"]
