"""Event dispatch: runs the registered hooks for an event, best effort."""

from __future__ import annotations

import time
from typing import Any

from assistant_core.core.protocols import IDebugTracer, IHookRegistry
from assistant_core.debug.types import DebugContext, DebugEvent, DebugLevel
from assistant_core.modules.handlers import HandlerTable, default_handler_table
from assistant_core.modules.types import Hook, HookContext
from assistant_core.utils.logging import get_logger

logger = get_logger("modules.dispatcher")


class Dispatcher:
    """Emits events to hooks in priority order with per-hook isolation."""

    def __init__(
        self,
        registry: IHookRegistry,
        tracer: IDebugTracer | None = None,
        handlers: HandlerTable | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Source of the hook list for each event.
            tracer: Optional debug tracer; consulted once per emit call.
            handlers: Handler table; defaults to the builtin handlers.
        """
        self._registry = registry
        self._tracer = tracer
        self._handlers = handlers if handlers is not None else default_handler_table()

    @property
    def handlers(self) -> HandlerTable:
        return self._handlers

    def emit(
        self,
        event: str,
        payload: dict[str, Any] | None = None,
        *,
        parent_id: str | None = None,
    ) -> HookContext | None:
        """Run every hook registered for ``event`` (and wildcard hooks).

        Hooks share one ``HookContext``, so a hook sees payload changes made
        by hooks that ran before it. A failing hook is recorded (when tracing)
        and skipped; the remaining hooks still run and nothing is raised.

        Args:
            event: Event name.
            payload: Mutable payload shared with the hooks. Not copied.
            parent_id: Optional id of an enclosing trace.

        Returns:
            The context after all hooks ran, or None if no hook matched.
        """
        hooks = self._registry.hooks_for(event)
        if not hooks:
            return None

        debug_ctx = self._tracer.new_context(parent_id) if self._tracer is not None else None
        ctx = HookContext(
            event=event,
            payload=payload if payload is not None else {},
            debug=debug_ctx,
        )

        for hook in hooks:
            handler = self._handlers.resolve(hook.handler)
            if handler is None:
                continue

            start = time.perf_counter()
            try:
                handler(ctx, hook)
            except Exception as e:
                elapsed = _elapsed_ms(start)
                logger.debug("Hook %s (%s) failed on %s: %s", hook.id, hook.handler, event, e)
                self._record(
                    debug_ctx,
                    hook,
                    event,
                    level=DebugLevel.ERROR,
                    message=f"Hook {hook.handler} failed: {e}",
                    duration_ms=elapsed,
                    data={"hook_id": hook.id, "error_type": type(e).__name__},
                )
            else:
                self._record(
                    debug_ctx,
                    hook,
                    event,
                    level=DebugLevel.DEBUG,
                    message=f"Hook {hook.handler} executed",
                    duration_ms=_elapsed_ms(start),
                    data={"hook_id": hook.id},
                )

        return ctx

    def _record(
        self,
        debug_ctx: DebugContext | None,
        hook: Hook,
        event: str,
        *,
        level: DebugLevel,
        message: str,
        duration_ms: float,
        data: dict[str, Any],
    ) -> None:
        if debug_ctx is None or self._tracer is None:
            return
        try:
            self._tracer.append_event(
                DebugEvent(
                    trace_id=debug_ctx.trace_id,
                    level=level,
                    event=event,
                    module=hook.module_id,
                    message=message,
                    data=data,
                    duration_ms=duration_ms,
                )
            )
        except Exception as e:
            logger.debug("Could not record debug event for %s: %s", event, e)


def _elapsed_ms(start: float) -> float:
    return max(0.0, (time.perf_counter() - start) * 1000)
