"""Debug tracer: a bounded ring of hook execution events."""

from __future__ import annotations

import json
import threading
from collections import deque

from assistant_core.core.protocols import IDebugSink
from assistant_core.debug.types import DebugContext, DebugEvent
from assistant_core.utils.logging import get_logger

logger = get_logger("debug.tracer")

DEFAULT_CAPACITY = 1000

ANALYSIS_PROMPT = """Analyze the following debug log and identify:
1. Any errors or failures
2. Performance issues (slow operations)
3. Patterns that could be optimized
4. Suggested fixes

Debug Log:
"""


class DebugTracer:
    """Records dispatch events for later inspection.

    The ring has its own lock, independent of the module registry lock.
    """

    def __init__(
        self,
        sink: IDebugSink | None = None,
        *,
        capacity: int = DEFAULT_CAPACITY,
        enabled: bool = False,
    ) -> None:
        """Initialize the tracer.

        Args:
            sink: Optional durable mirror for events (the config store).
            capacity: Maximum number of events kept in memory.
            enabled: Initial tracing state.
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._sink = sink
        self._capacity = capacity
        self._enabled = enabled
        self._lock = threading.Lock()
        self._log: deque[DebugEvent] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        """Start tracing emit calls."""
        self._enabled = True
        logger.info("Debug tracing enabled")

    def disable(self) -> None:
        """Stop tracing; calls already in flight keep their context."""
        self._enabled = False
        logger.info("Debug tracing disabled")

    def new_context(self, parent_id: str | None = None) -> DebugContext | None:
        """Start a trace for one emit call, or None when tracing is off."""
        if not self._enabled:
            return None
        return DebugContext(parent_id=parent_id)

    def append_event(self, event: DebugEvent) -> None:
        """Add an event to the ring, evicting the oldest when full."""
        with self._lock:
            # deque(maxlen) drops from the left, oldest first
            self._log.append(event)

        if self._sink is None:
            return
        try:
            self._sink.insert_debug_event(event)
        except Exception as e:
            logger.debug("Could not persist debug event %s: %s", event.id, e)

    def get_log(self) -> list[DebugEvent]:
        """Return a copy of the in-memory log, oldest first."""
        with self._lock:
            snapshot = list(self._log)
        return [event.model_copy(deep=True) for event in snapshot]

    def clear_log(self) -> None:
        """Empty the in-memory ring; persisted rows are kept."""
        with self._lock:
            self._log.clear()

    def get_log_json(self) -> str:
        """The in-memory log as indented JSON."""
        return json.dumps(
            [event.model_dump(mode="json") for event in self.get_log()], indent=2
        )

    def analysis_prompt(self) -> str:
        """Build a prompt asking an LLM to review the current log."""
        return ANALYSIS_PROMPT + self.get_log_json()

    def __len__(self) -> int:
        with self._lock:
            return len(self._log)
