"""Debug tracing for hook dispatch."""

from .tracer import DebugTracer
from .types import DebugAssertion, DebugContext, DebugEvent, DebugLevel

__all__ = [
    "DebugAssertion",
    "DebugContext",
    "DebugEvent",
    "DebugLevel",
    "DebugTracer",
]
