from pathlib import Path

import typer

from .commands import config, debug, emit, modules, watch
from .state import CLIState

app = typer.Typer(help="Assistant core runtime CLI")

# Include sub-commands
app.add_typer(config.app, name="config", help="Read and write config values")
app.add_typer(modules.app, name="modules", help="Inspect and toggle modules")
app.add_typer(debug.app, name="debug", help="Inspect debug traces")
app.command("emit", help="Emit an event through the hook dispatcher")(emit.emit_event)
app.command("watch", help="Print config change notifications")(watch.watch)


@app.callback()
def main_callback(
    ctx: typer.Context,
    db: Path | None = typer.Option(
        None,
        "--db",
        envvar="ASSISTANT_DB_PATH",
        help="SQLite database path (default: the newest .assistant session database)",
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", "-l", help="Logging level"
    ),
) -> None:
    ctx.obj = CLIState(db_path=str(db) if db is not None else None, log_level=log_level)


def main():
    app()


if __name__ == "__main__":
    main()
