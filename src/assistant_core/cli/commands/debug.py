"""Inspect persisted debug traces."""

import json

import typer

from assistant_core.cli.state import open_runtime
from assistant_core.core.error_handler import safe_entrypoint

app = typer.Typer(name="debug", help="Inspect debug traces")


@app.command("events")
@safe_entrypoint("cli.debug.events")
def list_events(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Maximum events to show"),
) -> None:
    """Print the most recent persisted debug events as JSON, newest first."""
    with open_runtime(ctx) as app_ctx:
        events = app_ctx.deps.store.recent_debug_events(limit)

    typer.echo(json.dumps(events, indent=2, default=str))


@app.command("prompt")
@safe_entrypoint("cli.debug.prompt")
def show_prompt(ctx: typer.Context) -> None:
    """Print an LLM analysis prompt built from failed assertions."""
    with open_runtime(ctx) as app_ctx:
        debug_module = app_ctx.deps.debug_module
        if debug_module is not None:
            prompt = debug_module.debug_prompt()
        else:
            prompt = app_ctx.deps.tracer.analysis_prompt()

    typer.echo(prompt)
