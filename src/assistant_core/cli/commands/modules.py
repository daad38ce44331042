"""Inspect and toggle registered modules."""

import typer
from rich.console import Console
from rich.table import Table

from assistant_core.cli.state import open_runtime
from assistant_core.core.error_handler import safe_entrypoint
from assistant_core.core.exceptions import CLIError
from assistant_core.utils.logging import get_logger

app = typer.Typer(name="modules", help="Inspect and toggle modules")
log = get_logger("cli.modules")
console = Console()


@app.command("list")
@safe_entrypoint("cli.modules.list")
def list_modules(ctx: typer.Context) -> None:
    """Show every module, including disabled ones."""
    with open_runtime(ctx) as app_ctx:
        modules = app_ctx.deps.registry.stored_modules()

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Priority", justify="right")
    table.add_column("Enabled")

    for module in modules:
        table.add_row(
            module.id,
            module.name,
            module.version,
            str(module.priority),
            "✓" if module.enabled else "✗",
        )

    console.print(table)


@app.command("hooks")
@safe_entrypoint("cli.modules.hooks")
def list_hooks(
    ctx: typer.Context,
    event: str | None = typer.Option(
        None, "--event", "-e", help="Only hooks that would run for this event"
    ),
) -> None:
    """Show loaded hooks in dispatch order."""
    with open_runtime(ctx) as app_ctx:
        registry = app_ctx.deps.registry
        hooks = registry.hooks_for(event) if event else registry.hooks()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Hook", style="cyan", no_wrap=True)
    table.add_column("Module")
    table.add_column("Event")
    table.add_column("Handler")
    table.add_column("Priority", justify="right")

    for hook in hooks:
        table.add_row(hook.id or "-", hook.module_id, hook.event, hook.handler, str(hook.priority))

    console.print(table)


def _set_enabled(ctx: typer.Context, module_id: str, enabled: bool) -> None:
    with open_runtime(ctx) as app_ctx:
        found = app_ctx.deps.registry.set_module_enabled(module_id, enabled)
    if not found:
        raise CLIError(f"Unknown module: {module_id}")

    state = "enabled" if enabled else "disabled"
    log.info("Module %s %s", module_id, state)
    typer.echo(f"Module {module_id} {state}")


@app.command("enable")
@safe_entrypoint("cli.modules.enable")
def enable_module(
    ctx: typer.Context,
    module_id: str = typer.Argument(..., help="Module ID"),
) -> None:
    """Enable a module and index its hooks."""
    _set_enabled(ctx, module_id, True)


@app.command("disable")
@safe_entrypoint("cli.modules.disable")
def disable_module(
    ctx: typer.Context,
    module_id: str = typer.Argument(..., help="Module ID"),
) -> None:
    """Disable a module; its row and hooks stay in the store."""
    _set_enabled(ctx, module_id, False)
