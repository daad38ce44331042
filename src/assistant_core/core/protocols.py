"""Protocols (interfaces) for core components."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assistant_core.debug.types import DebugContext, DebugEvent
    from assistant_core.modules.types import Hook, Module


@runtime_checkable
class IConfigStore(Protocol):
    """Key/value configuration access with versioning."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: Any, value_type: Any = None, description: str | None = None) -> int:
        """Upsert ``key`` and return its new version."""
        ...

    def get_bool(self, key: str) -> bool: ...

    def get_int(self, key: str) -> int: ...

    def max_version(self) -> int:
        """Highest version over all config rows; moves on every change."""
        ...


@runtime_checkable
class IDebugSink(Protocol):
    """Durable destination for debug events."""

    def insert_debug_event(self, event: DebugEvent) -> None: ...


@runtime_checkable
class IHookRegistry(Protocol):
    """Read side of the module registry used by the dispatcher."""

    def hooks_for(self, event: str) -> list[Hook]:
        """Return the hooks to run for ``event`` in dispatch order."""
        ...

    def get_module(self, module_id: str) -> Module | None: ...

    def reload(self) -> None:
        """Rebuild the in-memory index from the store."""
        ...


@runtime_checkable
class IDebugTracer(Protocol):
    """Tracing hooks consulted by the dispatcher."""

    @property
    def enabled(self) -> bool: ...

    def new_context(self, parent_id: str | None = None) -> DebugContext | None: ...

    def append_event(self, event: DebugEvent) -> None: ...
