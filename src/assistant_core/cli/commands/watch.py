"""Follow config changes in a running database."""

import threading
import time

import typer

from assistant_core.cli.state import open_runtime
from assistant_core.core.error_handler import safe_entrypoint
from assistant_core.utils.logging import get_logger

log = get_logger("cli.watch")


@safe_entrypoint("cli.watch")
def watch(
    ctx: typer.Context,
    interval: float = typer.Option(
        1.0, "--interval", "-i", min=0.01, help="Seconds between polls"
    ),
    count: int | None = typer.Option(
        None, "--count", "-c", min=1, help="Exit after this many notifications"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", min=0.0, help="Exit after this many seconds"
    ),
) -> None:
    """Print a line whenever the config store changes, until interrupted."""
    done = threading.Event()
    seen = 0
    seen_lock = threading.Lock()
    deadline = time.monotonic() + timeout if timeout is not None else None

    with open_runtime(ctx, start_notifier=True, overrides={"poll_interval": interval}) as app_ctx:
        store = app_ctx.deps.store

        def on_change(event: str) -> None:
            nonlocal seen
            typer.echo(f"{event}: version {store.max_version()}")
            with seen_lock:
                seen += 1
                if count is not None and seen >= count:
                    done.set()

        app_ctx.deps.notifier.on_change(on_change)
        typer.echo(f"Watching {store.path} (Ctrl+C to stop)")
        try:
            while not done.wait(0.05):
                if deadline is not None and time.monotonic() >= deadline:
                    break
        except KeyboardInterrupt:
            log.debug("Watch interrupted")
