"""Modules, hooks and event dispatch."""

from .builtin import DebugModule, LearningModule
from .dispatcher import Dispatcher
from .handlers import BuiltinHandler, HandlerTable, HookHandler, default_handler_table
from .registry import ModuleRegistry
from .types import WILDCARD_EVENT, Hook, HookContext, Module

__all__ = [
    "WILDCARD_EVENT",
    "BuiltinHandler",
    "DebugModule",
    "Dispatcher",
    "HandlerTable",
    "Hook",
    "HookContext",
    "HookHandler",
    "LearningModule",
    "Module",
    "ModuleRegistry",
    "default_handler_table",
]
