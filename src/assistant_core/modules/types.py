"""Module, hook and hook-context models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from assistant_core.debug.types import DebugContext

# Hooks registered on this event run for every emitted event
WILDCARD_EVENT = "*"


class Module(BaseModel):
    """A pluggable module persisted in the ``modules`` table."""

    id: str = Field(..., min_length=1, description="Unique module id")
    name: str = Field(..., description="Display name")
    version: str = Field(default="1.0.0", description="Module version string")
    enabled: bool = Field(default=True, description="Loaded into memory only while enabled")
    priority: int = Field(default=100, description="Lower runs earlier")
    config: dict[str, Any] = Field(default_factory=dict, description="Opaque module settings")
    schema_sql: str | None = Field(
        default=None,
        description="SQL script run on registration to add the module's tables",
    )

    @field_validator("schema_sql", mode="before")
    @classmethod
    def validate_schema_sql(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class Hook(BaseModel):
    """An event hook owned by a module."""

    id: str | None = Field(default=None, description="Hook id, generated when absent")
    module_id: str = Field(..., min_length=1, description="Owning module id")
    event: str = Field(..., min_length=1, description=f"Event name, or {WILDCARD_EVENT!r} for all")
    handler: str = Field(..., min_length=1, description="Builtin handler name")
    priority: int = Field(default=100, description="Lower runs earlier")
    enabled: bool = Field(default=True)
    config: dict[str, Any] = Field(default_factory=dict, description="Opaque handler settings")

    @property
    def is_wildcard(self) -> bool:
        return self.event == WILDCARD_EVENT

    def with_id(self) -> Hook:
        """Return this hook, or a copy carrying a fresh id if it has none."""
        if self.id:
            return self
        return self.model_copy(update={"id": str(uuid.uuid4())})


@dataclass
class HookContext:
    """State shared by reference across every hook of one emit call."""

    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    debug: DebugContext | None = None
