"""Emit an event through the hook dispatcher."""

import json
from typing import Any

import typer

from assistant_core.cli.state import open_runtime
from assistant_core.core.error_handler import safe_entrypoint
from assistant_core.core.exceptions import CLIError

# Tracing from the CLI also captures every event through the debug module
_TRACE_OVERRIDES = {"debug.enabled": True, "debug.trace_all": True}


def _parse_payload(text: str | None) -> dict[str, Any]:
    if not text:
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise CLIError(f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise CLIError("Payload must be a JSON object")
    return payload


@safe_entrypoint("cli.emit")
def emit_event(
    ctx: typer.Context,
    event: str = typer.Argument(..., help="Event name"),
    payload: str | None = typer.Option(
        None, "--payload", "-p", help="Event payload as a JSON object"
    ),
    trace: bool = typer.Option(
        False, "--trace", help="Trace this emit and print the debug log"
    ),
) -> None:
    """Run the hooks registered for EVENT and print the resulting payload."""
    data = _parse_payload(payload)

    with open_runtime(ctx, overrides=_TRACE_OVERRIDES if trace else None) as app_ctx:
        hook_ctx = app_ctx.deps.dispatcher.emit(event, data)
        debug_log = app_ctx.deps.tracer.get_log_json() if trace else None

    if hook_ctx is None:
        typer.echo(f"No hooks registered for event: {event}", err=True)

    typer.echo(json.dumps(data, indent=2, default=str, sort_keys=True))
    if debug_log is not None:
        typer.echo(debug_log)
