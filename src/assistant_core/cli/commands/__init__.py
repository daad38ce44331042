"""CLI commands for the assistant core runtime."""

from . import config, debug, emit, modules, watch

__all__ = ["config", "debug", "emit", "modules", "watch"]
