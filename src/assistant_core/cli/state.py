"""Per-invocation CLI state and runtime access."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer

from assistant_core.config.settings_manager import SettingsManager
from assistant_core.core import AppContext, bootstrap
from assistant_core.core.exceptions import CLIError
from assistant_core.store.config_store import latest_session_db, session_db_path
from assistant_core.utils.logging import parse_level


@dataclass
class CLIState:
    """Global options captured by the root callback."""

    db_path: str | None = None
    log_level: str = "WARNING"


def get_state(ctx: typer.Context) -> CLIState:
    state = ctx.find_root().obj
    if not isinstance(state, CLIState):
        return CLIState()
    return state


def _default_db_path() -> Path:
    """Reuse the newest session database so separate commands share state."""
    return latest_session_db() or session_db_path()


@contextmanager
def open_runtime(
    ctx: typer.Context, *, start_notifier: bool = False, overrides: dict | None = None
) -> Iterator[AppContext]:
    """Bootstrap against the selected database and close it afterwards.

    Raises:
        CLIError: If the runtime cannot be initialized
    """
    state = get_state(ctx)
    settings_overrides = dict(overrides or {})
    if state.db_path is not None:
        settings_overrides["db_path"] = state.db_path

    try:
        manager = SettingsManager()
        manager.env_manager.load_env_files()
        settings = manager.load(settings_overrides)
        if settings.db_path is None:
            settings = settings.model_copy(update={"db_path": str(_default_db_path())})
        app_ctx = bootstrap(
            settings,
            start_notifier=start_notifier,
            log_level=parse_level(state.log_level),
        )
    except RuntimeError as e:
        cause = e.__cause__ or e
        raise CLIError(f"Could not open runtime: {cause}") from e

    try:
        yield app_ctx
    finally:
        app_ctx.close()
