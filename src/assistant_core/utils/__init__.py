"""Shared utilities."""

from .locks import ReadWriteLock
from .logging import get_logger, setup_logging

__all__ = ["ReadWriteLock", "get_logger", "setup_logging"]
