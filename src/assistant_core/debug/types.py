"""Debug trace records: events, assertions and the per-emit context."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class DebugLevel(str, Enum):
    """Severity of a debug event."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DebugEvent(BaseModel):
    """A single traced occurrence, usually one hook execution."""

    id: str = Field(default_factory=_new_id, description="Event id")
    trace_id: str | None = Field(default=None, description="Owning trace id")
    timestamp: datetime = Field(default_factory=_now)
    level: DebugLevel = Field(default=DebugLevel.DEBUG)
    event: str = Field(description="Event name that was emitted")
    module: str | None = Field(default=None, description="Module owning the hook")
    message: str = Field(default="")
    data: dict[str, Any] = Field(default_factory=dict)
    duration_ms: float = Field(default=0.0, ge=0.0)


class DebugAssertion(BaseModel):
    """An expected/actual comparison recorded during a trace."""

    id: str = Field(default_factory=_new_id)
    trace_id: str | None = None
    timestamp: datetime = Field(default_factory=_now)
    name: str
    expected: str = ""
    actual: str = ""
    passed: bool
    message: str = ""


@dataclass
class DebugContext:
    """Trace state shared by every hook of one emit call."""

    trace_id: str = field(default_factory=_new_id)
    parent_id: str | None = None
    start_time: datetime = field(default_factory=_now)
    events: list[DebugEvent] = field(default_factory=list)
    assertions: list[DebugAssertion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view, safe to serialize."""
        return {
            "trace_id": self.trace_id,
            "parent_id": self.parent_id,
            "start_time": self.start_time.isoformat(),
            "events": [e.model_dump(mode="json") for e in self.events],
            "assertions": [a.model_dump(mode="json") for a in self.assertions],
        }
