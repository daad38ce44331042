"""Record types for rows held by the persistent store."""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ConfigValueType(str, Enum):
    """Declared type of a config value."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    JSON = "json"


class ConfigEntry(BaseModel):
    """One row of the ``config`` table."""

    key: str = Field(description="Unique config key")
    value: str = Field(description="Raw stored value")
    type: ConfigValueType = Field(
        default=ConfigValueType.STRING, description="Declared value type"
    )
    description: str | None = Field(default=None, description="Human-readable help")
    version: int = Field(default=1, description="Per-key monotonic version")
    updated_at: int = Field(default=0, description="Unix timestamp of last update")

    def typed_value(self) -> Any:
        """Return the value converted according to its declared type."""
        if self.type is ConfigValueType.BOOL:
            return parse_bool(self.value)
        if self.type is ConfigValueType.INT:
            return parse_int(self.value)
        if self.type is ConfigValueType.JSON:
            return parse_json(self.value)
        return self.value


def parse_bool(value: str | None) -> bool:
    """Lenient bool parsing: only "true" and "1" are true."""
    if value is None:
        return False
    return value.strip().lower() in ("true", "1")


def parse_int(value: str | None) -> int:
    """Lenient int parsing: the leading integer, or 0."""
    if value is None:
        return 0
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def parse_float(value: str | None) -> float:
    """Lenient float parsing, 0.0 when the text is not a number."""
    if value is None:
        return 0.0
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


def parse_json(value: str | None) -> Any:
    """Lenient JSON parsing, None when the text is not valid JSON."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None
