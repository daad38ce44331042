import io
import logging

import pytest
import typer

from assistant_core.core.error_handler import handle_error, safe_entrypoint
from assistant_core.core.exceptions import CLIError, StoreError
from assistant_core.utils.logging import setup_logging


def test_handle_error_logs_known_assistant_error_as_error():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    handle_error(StoreError("database is locked"))

    out = buf.getvalue()
    assert "[store] database is locked" in out
    assert "🔥" in out


def test_handle_error_logs_unknown_exception_as_critical():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    handle_error(ValueError("boom"))

    out = buf.getvalue()
    assert "💀" in out
    assert "Unexpected error: ValueError: boom" in out


def test_handle_error_prefixes_context_and_fills_empty_message():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    handle_error(RuntimeError(), context="unit")

    assert "[unit] Unexpected error: RuntimeError: No error message provided" in buf.getvalue()


def test_safe_entrypoint_returns_function_result_and_passes_kwargs():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    @safe_entrypoint("unit.ok")
    def f(x: int, *, step: int = 1) -> int:
        return x + step

    assert f(41, step=1) == 42
    log_output = buf.getvalue()
    assert "ERROR" not in log_output
    assert "CRITICAL" not in log_output


def test_safe_entrypoint_logs_and_exits_with_status_one():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    @safe_entrypoint("unit.fail")
    def g():
        raise CLIError("bad input")

    with pytest.raises(typer.Exit) as exc_info:
        g()
    assert exc_info.value.exit_code == 1

    out = buf.getvalue()
    assert "🔥" in out
    assert "[unit.fail] [cli] bad input" in out


def test_safe_entrypoint_turns_unexpected_errors_into_exit():
    buf = io.StringIO()
    setup_logging(level=logging.DEBUG, stream=buf)

    @safe_entrypoint("unit.crash")
    def boom():
        raise KeyError("missing")

    with pytest.raises(typer.Exit) as exc_info:
        boom()
    assert exc_info.value.exit_code == 1
    assert isinstance(exc_info.value.__cause__, KeyError)
    assert "💀" in buf.getvalue()


def test_safe_entrypoint_lets_exit_through():
    @safe_entrypoint("unit.exit")
    def h():
        raise typer.Exit(3)

    with pytest.raises(typer.Exit) as exc_info:
        h()
    assert exc_info.value.exit_code == 3
