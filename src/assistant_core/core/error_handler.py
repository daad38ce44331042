"""Error reporting for CLI entrypoints."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

import typer

from assistant_core.core.exceptions import AssistantError
from assistant_core.utils.logging import get_logger

logger = get_logger("core.error_handler")

T = TypeVar("T")
P = ParamSpec("P")


def handle_error(error: Exception, *, context: str | None = None) -> None:
    """Log ``error``: known errors at ERROR, anything else at CRITICAL."""
    prefix = f"[{context}] " if context else ""

    if isinstance(error, AssistantError):
        logger.error(f"{prefix}{error}")
        return

    message = str(error) or "No error message provided"
    logger.critical(f"{prefix}Unexpected error: {type(error).__name__}: {message}")


def safe_entrypoint(context: str) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Wrap a CLI command so failures are logged and exit with status 1."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except (typer.Exit, typer.Abort):
                raise
            except Exception as err:
                handle_error(err, context=context)
                raise typer.Exit(1) from err

        wrapper.__signature__ = inspect.signature(func)  # type: ignore[attr-defined]
        return wrapper

    return decorator
