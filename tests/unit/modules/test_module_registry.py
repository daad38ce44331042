"""Unit tests for the module registry."""

import sqlite3
import threading

import pytest

from assistant_core.core.exceptions import ModuleRegistrationError, StoreError
from assistant_core.modules.registry import ModuleRegistry
from assistant_core.modules.types import Hook, Module


def _ids(hooks):
    return [hook.id for hook in hooks]


class TestRegistration:
    def test_register_module_is_idempotent(self, registry, store):
        module = Module(id="m1", name="One", config={"a": 1})
        registry.register_module(module)
        registry.register_module(module.model_copy(update={"name": "One again"}))

        rows = store.query("SELECT module_id, name FROM modules WHERE module_id = 'm1'")
        assert len(rows) == 1
        assert registry.get_module("m1").name == "One again"
        assert registry.get_module("m1").config == {"a": 1}

    def test_register_hook_generates_id(self, registry):
        registry.register_module(Module(id="m1", name="One"))
        hook = registry.register_hook(Hook(module_id="m1", event="x", handler="log"))
        assert hook.id
        assert _ids(registry.hooks_for("x")) == [hook.id]

    def test_hook_for_unknown_module_rejected(self, registry):
        with pytest.raises(ModuleRegistrationError):
            registry.register_hook(Hook(module_id="ghost", event="x", handler="log"))

    def test_unknown_handler_name_is_accepted(self, registry, add_module):
        add_module("m1", ("x", "no_such_handler", 10))
        assert len(registry.hooks_for("x")) == 1

    def test_schema_failure_raises_after_upsert_and_retry_works(self, registry, store):
        broken = Module(id="ext", name="Ext", schema_sql="CREATE TABLE broken (")
        with pytest.raises(ModuleRegistrationError) as exc_info:
            registry.register_module(broken)
        assert str(exc_info.value).startswith("[modules]")

        assert store.query_one("SELECT 1 FROM modules WHERE module_id = 'ext'") is not None
        # Not reloaded yet
        assert registry.get_module("ext") is None

        fixed = broken.model_copy(
            update={"schema_sql": "CREATE TABLE IF NOT EXISTS ext_data (id INTEGER);"}
        )
        registry.register_module(fixed)
        assert registry.get_module("ext") is not None
        assert store.query("SELECT * FROM ext_data") == []


class TestOrdering:
    def test_hooks_sorted_by_priority(self, registry, add_module):
        add_module("m1", ("x", "log", 30), ("x", "debug", 10), ("x", "log", 20))
        assert [h.priority for h in registry.hooks_for("x")] == [10, 20, 30]

    def test_equal_priority_keeps_registration_order(self, registry, add_module):
        hooks = add_module("m1", ("x", "log", 5), ("x", "debug", 5), ("x", "auto_fix", 5))
        assert _ids(registry.hooks_for("x")) == _ids(hooks)

    def test_wildcard_hooks_interleave_by_priority(self, registry, add_module):
        exact = add_module("m1", ("x", "log", 10), ("x", "log", 30))
        wild = add_module("m2", ("*", "debug", 20), ("*", "debug", 40))

        assert _ids(registry.hooks_for("x")) == [
            exact[0].id,
            wild[0].id,
            exact[1].id,
            wild[1].id,
        ]

    def test_wildcard_runs_for_unknown_event(self, registry, add_module):
        wild = add_module("m1", ("*", "debug", 1))
        assert _ids(registry.hooks_for("never_registered")) == _ids(wild)

    def test_wildcard_event_is_not_doubled(self, registry, add_module):
        wild = add_module("m1", ("*", "debug", 1))
        assert _ids(registry.hooks_for("*")) == _ids(wild)

    def test_no_hooks(self, registry):
        assert registry.hooks_for("x") == []

    def test_listing_helpers(self, registry, add_module):
        add_module("b", ("y", "log", 2), priority=20)
        add_module("a", ("x", "log", 1), ("*", "debug", 3), priority=10)

        assert [m.id for m in registry.modules()] == ["a", "b"]
        assert [h.priority for h in registry.hooks()] == [1, 2, 3]
        assert registry.events() == ["x", "y"]


class TestEnableDisable:
    def test_disabled_module_dropped_but_row_kept(self, registry, add_module, store):
        add_module("m1", ("x", "log", 1))
        assert registry.set_module_enabled("m1", False) is True

        assert registry.get_module("m1") is None
        assert registry.hooks_for("x") == []
        row = store.query_one("SELECT enabled FROM modules WHERE module_id = 'm1'")
        assert row["enabled"] == 0
        assert [m.id for m in registry.stored_modules()] == ["m1"]

        registry.set_module_enabled("m1", True)
        assert len(registry.hooks_for("x")) == 1

    def test_module_registered_disabled(self, registry, add_module):
        add_module("m1", ("x", "log", 1), enabled=False)
        assert registry.hooks_for("x") == []

    def test_disabled_hook_not_indexed(self, registry, add_module):
        add_module("m1")
        registry.register_hook(Hook(id="h", module_id="m1", event="x", handler="log", enabled=False))
        assert registry.hooks_for("x") == []

    def test_toggle_unknown_module(self, registry):
        assert registry.set_module_enabled("ghost", False) is False

    def test_delete_cascades_to_hooks(self, registry, add_module, store):
        add_module("m1", ("x", "log", 1), ("y", "log", 1))
        assert registry.delete_module("m1") is True

        assert store.query("SELECT * FROM module_hooks WHERE module_id = 'm1'") == []
        assert registry.hooks_for("x") == []
        assert registry.delete_module("m1") is False


class TestReload:
    def test_reload_picks_up_external_writes(self, registry, store, db_path):
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("INSERT INTO modules (module_id, name) VALUES ('ext', 'External')")
            conn.execute(
                "INSERT INTO module_hooks (hook_id, module_id, event, handler) "
                "VALUES ('ext.h', 'ext', 'x', 'log')"
            )
            conn.commit()
        finally:
            conn.close()

        assert registry.hooks_for("x") == []
        registry.reload()
        assert _ids(registry.hooks_for("x")) == ["ext.h"]

    def test_failed_reload_keeps_previous_snapshot(self, registry, add_module, store):
        add_module("m1", ("x", "log", 1))
        store.close()

        with pytest.raises(StoreError):
            registry.reload()
        assert len(registry.hooks_for("x")) == 1
        assert registry.get_module("m1") is not None

    def test_malformed_config_json_loads_as_empty(self, registry, add_module, store):
        add_module("m1", ("x", "log", 1))
        store.execute("UPDATE module_hooks SET config = 'not json' WHERE module_id = 'm1'")
        registry.reload()
        assert registry.hooks_for("x")[0].config == {}

    def test_lookups_during_reloads(self, registry, add_module):
        add_module("m1", ("x", "log", 1), ("x", "debug", 2))
        errors = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                hooks = registry.hooks_for("x")
                if len(hooks) != 2:
                    errors.append(len(hooks))

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for _ in range(20):
            registry.reload()
        stop.set()
        for t in threads:
            t.join()

        assert errors == []


def test_registry_reloads_on_notifier_change(store, db_path):
    from assistant_core.runtime.notifier import ChangeNotifier

    notifier = ChangeNotifier(store.max_version, poll_interval=0.02)
    registry = ModuleRegistry(store, notifier)
    reloaded = threading.Event()
    original = registry.reload

    def tracking_reload():
        original()
        reloaded.set()

    registry.reload = tracking_reload
    try:
        notifier.start()
        store.set("temperature", "0.3")
        assert reloaded.wait(2.0)
    finally:
        notifier.stop()
