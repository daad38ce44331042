"""Read and write values in the config store."""

import typer
from rich.console import Console
from rich.table import Table

from assistant_core.cli.state import open_runtime
from assistant_core.core.error_handler import safe_entrypoint
from assistant_core.store.types import ConfigValueType
from assistant_core.utils.logging import get_logger

app = typer.Typer(name="config", help="Read and write config values")
log = get_logger("cli.config")
console = Console()


def _truncate_text(text: str, limit: int = 60) -> str:
    text = text or ""
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


@app.command("get")
@safe_entrypoint("cli.config.get")
def get_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key to get"),
) -> None:
    """Print the value stored under KEY."""
    with open_runtime(ctx) as app_ctx:
        entry = app_ctx.deps.store.get_entry(key)

    if entry is None:
        typer.echo(f"No configuration found for key: {key}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{entry.key}={entry.value}")


@app.command("set")
@safe_entrypoint("cli.config.set")
def set_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key to set"),
    value: str = typer.Argument(..., help="Value to set"),
    value_type: ConfigValueType | None = typer.Option(
        None, "--type", "-t", help="Declared value type (kept from the existing row if omitted)"
    ),
    description: str | None = typer.Option(
        None, "--description", "-d", help="Human-readable description"
    ),
) -> None:
    """Insert or update KEY; running processes pick the change up on their next poll."""
    with open_runtime(ctx) as app_ctx:
        version = app_ctx.deps.store.set(key, value, value_type, description)

    log.info("Set %s (version %d)", key, version)
    typer.echo(f"{key}={value} (version {version})")


@app.command("unset")
@safe_entrypoint("cli.config.unset")
def unset_config(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Configuration key to remove"),
) -> None:
    """Remove KEY from the store."""
    with open_runtime(ctx) as app_ctx:
        removed = app_ctx.deps.store.delete(key)

    if not removed:
        typer.echo(f"No configuration found for key: {key}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Removed {key}")


@app.command("list")
@safe_entrypoint("cli.config.list")
def list_config(ctx: typer.Context) -> None:
    """Show every config row with its type and version."""
    with open_runtime(ctx) as app_ctx:
        entries = app_ctx.deps.store.entries()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    table.add_column("Type")
    table.add_column("Version", justify="right")

    for entry in entries:
        table.add_row(
            entry.key,
            _truncate_text(entry.value),
            entry.type.value,
            str(entry.version),
        )

    console.print(table)
