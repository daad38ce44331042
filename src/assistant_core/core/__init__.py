"""Core wiring: context, dependencies, bootstrap and errors."""

from .app_context import AppContext
from .bootstrap import bootstrap

__all__ = ["AppContext", "bootstrap"]
