"""Environment variable handling for runtime settings."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from assistant_core.core.exceptions import ConfigError
from assistant_core.utils.logging import get_logger

logger = get_logger("config.env_manager")

DEFAULT_ENV_PREFIX = "ASSISTANT_"


class EnvManager:
    """Loads .env files and maps prefixed variables onto settings keys."""

    def __init__(
        self, env_prefix: str = DEFAULT_ENV_PREFIX, env_paths: list[Path] | None = None
    ):
        """Initialize the environment manager.

        Args:
            env_prefix: Prefix for environment variables to load (default: "ASSISTANT_")
            env_paths: Optional list of .env file paths (default: .env and .env.local
                in the working directory)
        """
        self.env_prefix = env_prefix
        self.env_paths = (
            env_paths
            if env_paths is not None
            else [Path.cwd() / ".env", Path.cwd() / ".env.local"]
        )

    def load_env_files(self) -> int:
        """Load the configured .env files; later files override earlier ones.

        Returns:
            Number of files loaded

        Raises:
            ConfigError: If a .env file exists but cannot be loaded
        """
        loaded = 0
        for env_path in self.env_paths:
            if not env_path.exists():
                continue
            try:
                load_dotenv(env_path, override=loaded > 0)
            except Exception as e:
                raise ConfigError(f"Failed to load .env file {env_path}: {e}") from e
            logger.info(f"Loaded environment variables from {env_path}")
            loaded += 1

        if not loaded:
            logger.debug("No .env files found to load")
        return loaded

    def get_config_from_env(self) -> dict[str, Any]:
        """Extract settings from prefixed environment variables.

        ``ASSISTANT_DEBUG__CAPACITY=50`` becomes ``{"debug": {"capacity": 50}}``.

        Raises:
            ConfigError: If environment variable parsing fails
        """
        config_data: dict[str, Any] = {}
        env_count = 0

        try:
            for key, value in os.environ.items():
                if not key.startswith(self.env_prefix):
                    continue
                config_key = key[len(self.env_prefix) :].lower()
                self._set_nested_value(config_data, config_key.split("__"), value)
                env_count += 1
        except Exception as e:
            raise ConfigError(f"Failed to parse environment variables: {e}") from e

        if env_count > 0:
            logger.debug(
                f"Loaded {env_count} environment variables with prefix '{self.env_prefix}'"
            )
        return config_data

    def _set_nested_value(
        self, data: dict[str, Any], key_parts: list[str], value: str
    ) -> None:
        current = data
        for part in key_parts[:-1]:
            if part not in current:
                current[part] = {}
            elif not isinstance(current[part], dict):
                logger.warning(
                    f"Cannot set nested value for {'.'.join(key_parts)}: {part} is not a dictionary"
                )
                return
            current = current[part]

        current[key_parts[-1]] = self._convert_env_value(value)

    def _convert_env_value(self, value: str) -> str | None:
        """Map "null" to None; other values stay strings for pydantic to coerce."""
        return None if value == "null" else value
