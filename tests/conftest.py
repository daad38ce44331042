from __future__ import annotations

import sys
from pathlib import Path

# Add project src/ to sys.path for imports like `assistant_core.*`
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

from assistant_core.debug.tracer import DebugTracer
from assistant_core.modules.dispatcher import Dispatcher
from assistant_core.modules.registry import ModuleRegistry
from assistant_core.modules.types import Hook, Module
from assistant_core.store.config_store import ConfigStore


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "assistant.db"


@pytest.fixture
def store(db_path):
    store = ConfigStore(db_path)
    yield store
    store.close()


@pytest.fixture
def registry(store):
    return ModuleRegistry(store)


@pytest.fixture
def tracer(store):
    return DebugTracer(store, capacity=100, enabled=True)


@pytest.fixture
def dispatcher(registry, tracer):
    return Dispatcher(registry, tracer)


@pytest.fixture
def add_module(registry):
    """Register a module and, optionally, hooks given as (event, handler, priority)."""

    def _add(module_id, *hooks, priority=100, enabled=True):
        registry.register_module(
            Module(id=module_id, name=module_id.title(), priority=priority, enabled=enabled)
        )
        registered = []
        for i, (event, handler, hook_priority) in enumerate(hooks):
            registered.append(
                registry.register_hook(
                    Hook(
                        id=f"{module_id}.{event}.{i}",
                        module_id=module_id,
                        event=event,
                        handler=handler,
                        priority=hook_priority,
                    )
                )
            )
        return registered

    return _add
