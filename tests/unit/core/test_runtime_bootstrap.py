"""Unit tests for bootstrap wiring."""

import logging
from unittest.mock import patch

import pytest

from assistant_core.config.schemas import DebugSettings, RuntimeSettings
from assistant_core.core.app_context import AppContext
from assistant_core.core.bootstrap import bootstrap
from assistant_core.core.dependencies import AppDependencies
from assistant_core.modules.builtin import DEBUG_MODULE_ID, LEARNING_MODULE_ID


@pytest.fixture
def settings(tmp_path):
    return RuntimeSettings(db_path=str(tmp_path / "runtime.db"), poll_interval=0.05)


@pytest.fixture
def app(settings):
    ctx = bootstrap(settings, start_notifier=False, log_level=logging.WARNING)
    yield ctx
    ctx.close()


class TestBootstrap:
    def test_wires_every_component(self, app):
        deps = app.deps
        assert isinstance(deps, AppDependencies)
        assert deps.is_initialized()
        assert deps.store.get("default_provider") == "cerebras"
        assert deps.registry is not None
        assert deps.dispatcher is not None
        assert deps.handlers is not None
        assert deps.tracer.enabled is False

    def test_builtin_modules_registered(self, app):
        registry = app.deps.registry
        assert registry.get_module(LEARNING_MODULE_ID) is not None
        assert registry.get_module(DEBUG_MODULE_ID) is not None
        assert app.deps.learning is not None
        assert app.deps.debug_module is not None

    def test_builtin_modules_optional(self, tmp_path):
        settings = RuntimeSettings(db_path=str(tmp_path / "bare.db"), load_builtin_modules=False)
        with bootstrap(settings, start_notifier=False) as ctx:
            assert ctx.deps.registry.modules() == []
            assert ctx.deps.learning is None

    def test_tracing_from_settings(self, tmp_path):
        settings = RuntimeSettings(
            db_path=str(tmp_path / "traced.db"), debug=DebugSettings(enabled=True, capacity=5)
        )
        with bootstrap(settings, start_notifier=False) as ctx:
            assert ctx.deps.tracer.enabled is True
            assert ctx.deps.tracer.capacity == 5

    def test_capture_hook_follows_trace_all(self, tmp_path):
        quiet = RuntimeSettings(db_path=str(tmp_path / "quiet.db"))
        with bootstrap(quiet, start_notifier=False) as ctx:
            assert ctx.deps.registry.hooks_for("anything") == []

        loud = RuntimeSettings(
            db_path=str(tmp_path / "loud.db"), debug=DebugSettings(trace_all=True)
        )
        with bootstrap(loud, start_notifier=False) as ctx:
            [hook] = ctx.deps.registry.hooks_for("anything")
            assert hook.module_id == DEBUG_MODULE_ID

    def test_tracing_from_debug_mode_flag(self, settings):
        with bootstrap(settings, start_notifier=False) as first:
            first.deps.store.set("debug_mode", "true")

        with bootstrap(settings, start_notifier=False) as second:
            assert second.deps.tracer.enabled is True

    def test_notifier_started_and_stopped(self, settings):
        ctx = bootstrap(settings)
        notifier = ctx.deps.notifier
        assert notifier.running
        ctx.close()
        assert not notifier.running
        ctx.close()

    def test_failure_raises_runtime_error(self, settings):
        with patch(
            "assistant_core.core.bootstrap.ModuleRegistry", side_effect=OSError("boom")
        ):
            with pytest.raises(RuntimeError, match="Failed to initialize") as exc_info:
                bootstrap(settings, start_notifier=False)
        assert isinstance(exc_info.value.__cause__, OSError)


class TestAppContext:
    def test_deps_requires_bootstrap(self):
        with pytest.raises(RuntimeError, match="bootstrap"):
            AppContext().deps

    def test_close_without_dependencies(self):
        AppContext().close()
