"""Builtin hook handlers and the table that resolves them by name.

The set of handlers is closed: hooks name one of ``BuiltinHandler`` and the
dispatcher resolves that name through a ``HandlerTable`` built once at
startup. Names that do not resolve are accepted at registration and skipped
at dispatch.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from enum import Enum

from assistant_core.core.exceptions import HookHandlerError
from assistant_core.debug.types import DebugAssertion, DebugEvent, DebugLevel
from assistant_core.modules.types import Hook, HookContext
from assistant_core.utils.logging import get_logger, parse_level

logger = get_logger("modules.hooks")

HookHandler = Callable[[HookContext, Hook], None]


class BuiltinHandler(str, Enum):
    """Names of the handlers shipped with the runtime."""

    LOG = "log"
    DEBUG = "debug"
    LLM_ANALYZE = "llm_analyze"
    TEST_ASSERT = "test_assert"
    AUTO_FIX = "auto_fix"
    PATTERN_LEARN = "pattern_learn"


class HandlerTable:
    """Name → handler registration table."""

    def __init__(self) -> None:
        self._handlers: dict[str, HookHandler] = {}

    def register(self, name: BuiltinHandler | str, handler: HookHandler) -> None:
        key = name.value if isinstance(name, BuiltinHandler) else name
        self._handlers[key] = handler

    def resolve(self, name: str) -> HookHandler | None:
        """Return the handler for ``name``, or None if it is unknown."""
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._handlers)


# ============================================================
# Built-in Hook Handlers
# ============================================================


def handle_log(ctx: HookContext, hook: Hook) -> None:
    """Log the event and its payload."""
    level = parse_level(hook.config.get("level"), default=logging.INFO)
    data = json.dumps(ctx.payload, default=str, sort_keys=True)
    logger.log(level, "[%s] %s: %s", ctx.timestamp.strftime("%H:%M:%S"), ctx.event, data)


def handle_debug(ctx: HookContext, hook: Hook) -> None:
    """Capture a snapshot of the payload into the current trace."""
    if ctx.debug is None:
        return

    ctx.debug.events.append(
        DebugEvent(
            trace_id=ctx.debug.trace_id,
            level=DebugLevel.DEBUG,
            event=ctx.event,
            module=hook.module_id,
            message="payload captured",
            data=json.loads(json.dumps(ctx.payload, default=str)),
        )
    )


def handle_llm_analyze(ctx: HookContext, hook: Hook) -> None:
    """Mark the payload so the caller sends the trace to an LLM for review.

    The LLM call itself belongs to the caller; this only prepares the data.
    """
    if ctx.debug is None:
        return

    ctx.payload["_llm_analysis_requested"] = True
    ctx.payload["_debug_context"] = ctx.debug


def handle_test_assert(ctx: HookContext, hook: Hook) -> None:
    """Record an expected/actual assertion on the current trace."""
    if ctx.debug is None:
        return

    name = str(ctx.payload.get("assertion_name", ""))
    expected = str(ctx.payload.get("expected", ""))
    actual = str(ctx.payload.get("actual", ""))
    passed = expected == actual

    ctx.debug.assertions.append(
        DebugAssertion(
            trace_id=ctx.debug.trace_id,
            timestamp=datetime.now(UTC),
            name=name,
            expected=expected,
            actual=actual,
            passed=passed,
            message="" if passed else f"Assertion failed: expected {expected!r}, got {actual!r}",
        )
    )


def handle_auto_fix(ctx: HookContext, hook: Hook) -> None:
    """Flag an error in the payload for an LLM fix request.

    Raises:
        HookHandlerError: If the payload carries an error that is not a string.
    """
    error = ctx.payload.get("error")
    if error is not None and not isinstance(error, str):
        raise HookHandlerError(
            f"auto_fix expects a string error, got {type(error).__name__}"
        )
    if error:
        ctx.payload["_auto_fix_requested"] = True
        ctx.payload["_error_to_fix"] = error


def handle_pattern_learn(ctx: HookContext, hook: Hook) -> None:
    """Validate a learning sample; storage is the learning module's job."""
    pattern_type = ctx.payload.get("pattern_type")
    sample = ctx.payload.get("input")
    if not isinstance(pattern_type, str) or not pattern_type:
        return
    if not isinstance(sample, str) or not sample:
        return

    output = ctx.payload.get("output")
    success = ctx.payload.get("success") is True
    ctx.payload["_pattern_validated"] = success and isinstance(output, str) and bool(output)


BUILTIN_HANDLERS: dict[BuiltinHandler, HookHandler] = {
    BuiltinHandler.LOG: handle_log,
    BuiltinHandler.DEBUG: handle_debug,
    BuiltinHandler.LLM_ANALYZE: handle_llm_analyze,
    BuiltinHandler.TEST_ASSERT: handle_test_assert,
    BuiltinHandler.AUTO_FIX: handle_auto_fix,
    BuiltinHandler.PATTERN_LEARN: handle_pattern_learn,
}


def default_handler_table() -> HandlerTable:
    """Build the table holding every builtin handler."""
    table = HandlerTable()
    for name, handler in BUILTIN_HANDLERS.items():
        table.register(name, handler)
    return table
