"""Assistant core - hot-reloadable config and event-hook runtime."""

__version__ = "0.1.0"

from .core import AppContext, bootstrap

__all__ = ["AppContext", "bootstrap"]
