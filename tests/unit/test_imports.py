"""Import smoke tests for the public package surface."""


def test_package_imports_without_cycles():
    import assistant_core

    assert assistant_core.__version__
    assert assistant_core.bootstrap is not None


def test_subpackage_exports():
    from assistant_core.config import RuntimeSettings, SettingsManager
    from assistant_core.debug import DebugTracer
    from assistant_core.modules import Dispatcher, LearningModule, ModuleRegistry
    from assistant_core.runtime import ChangeNotifier
    from assistant_core.store import ConfigStore

    for obj in (
        RuntimeSettings,
        SettingsManager,
        DebugTracer,
        Dispatcher,
        LearningModule,
        ModuleRegistry,
        ChangeNotifier,
        ConfigStore,
    ):
        assert obj is not None


def test_core_components_satisfy_protocols(store, registry, tracer):
    from assistant_core.core.protocols import (
        IConfigStore,
        IDebugSink,
        IDebugTracer,
        IHookRegistry,
    )

    assert isinstance(store, IConfigStore)
    assert isinstance(store, IDebugSink)
    assert isinstance(registry, IHookRegistry)
    assert isinstance(tracer, IDebugTracer)
