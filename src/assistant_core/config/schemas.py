"""Runtime settings schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from assistant_core.debug.tracer import DEFAULT_CAPACITY
from assistant_core.runtime.notifier import DEFAULT_POLL_INTERVAL
from assistant_core.utils.logging import LOG_LEVELS


class DebugSettings(BaseModel):
    """Settings for the debug tracer."""

    enabled: bool = Field(default=False, description="Trace emit calls from startup")
    capacity: int = Field(
        default=DEFAULT_CAPACITY, gt=0, description="Maximum events kept in memory"
    )
    persist: bool = Field(
        default=True, description="Mirror trace events into the debug_events table"
    )
    trace_all: bool = Field(
        default=False, description="Run the debug module capture hook on every event"
    )


class RuntimeSettings(BaseModel):
    """Process-level settings for the runtime.

    These are read once at startup. Values that change while the process runs
    live in the config store instead.
    """

    db_path: str | None = Field(
        default=None,
        description="SQLite database path; a fresh session file when unset",
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL,
        gt=0.0,
        description="Seconds between change-detection polls",
    )
    notifier_workers: int = Field(
        default=4, gt=0, description="Worker threads for change watchers"
    )
    log_level: str = Field(default="INFO", description="Root log level name")
    debug: DebugSettings = Field(default_factory=DebugSettings)
    load_builtin_modules: bool = Field(
        default=True, description="Register the learning and debug modules at startup"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level.isdigit():
            names = {number: name for name, number in LOG_LEVELS.items()}
            level = names.get(int(level), level)
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuntimeSettings:
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
