"""Layered loading of runtime settings."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from assistant_core.config.env_manager import EnvManager
from assistant_core.config.schemas import RuntimeSettings
from assistant_core.core.exceptions import ConfigError
from assistant_core.utils.logging import get_logger

logger = get_logger("config.settings_manager")


class SettingsManager:
    """Resolves ``RuntimeSettings`` from layered sources.

    Layer priority (highest to lowest):
    1. Overrides (dot-notation keys, e.g. ``{"debug.enabled": True}``)
    2. Environment variables (``ASSISTANT_`` prefix, ``__`` for nesting)
    3. YAML files, in the order given
    4. Schema defaults
    """

    def __init__(
        self,
        config_paths: list[Path | str] | None = None,
        env_manager: EnvManager | None = None,
    ):
        self.env_manager = env_manager or EnvManager()
        self.config_paths = [Path(p) for p in (config_paths or [])]
        self._settings: RuntimeSettings | None = None

    @property
    def settings(self) -> RuntimeSettings:
        """The last loaded settings, loading them on first access."""
        if self._settings is None:
            return self.load()
        return self._settings

    def load(self, overrides: dict[str, Any] | None = None) -> RuntimeSettings:
        """Merge every layer and validate the result.

        Raises:
            ConfigError: If a YAML file is invalid or the merged settings fail
                validation
        """
        data: dict[str, Any] = RuntimeSettings().to_dict()

        for path in self.config_paths:
            yaml_data = self._load_yaml_file(path)
            if yaml_data:
                data = self._deep_merge(data, yaml_data)
                logger.debug(f"Merged YAML settings from {path}")

        env_data = self.env_manager.get_config_from_env()
        if env_data:
            data = self._deep_merge(data, env_data)

        if overrides:
            data = self._deep_merge(data, self._expand_dotted(overrides))

        try:
            settings = RuntimeSettings.from_dict(data)
        except ValidationError as e:
            error_msg = f"Invalid runtime settings: {e}"
            logger.error(error_msg)
            raise ConfigError(error_msg) from e

        self._settings = settings
        return settings

    def _load_yaml_file(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            logger.debug(f"YAML file {path} does not exist, skipping")
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Failed to load settings from {path}: {e}") from e

        if data is None:
            logger.warning(f"Settings file {path} is empty")
            return None
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")
        return data

    @staticmethod
    def _expand_dotted(overrides: dict[str, Any]) -> dict[str, Any]:
        """Turn ``{"a.b": 1}`` into ``{"a": {"b": 1}}``."""
        result: dict[str, Any] = {}
        for key, value in overrides.items():
            parts = key.split(".")
            current = result
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value
        return result

    @classmethod
    def _deep_merge(cls, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result
