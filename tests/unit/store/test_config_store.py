"""Unit tests for the persistent config store."""

import sqlite3

import pytest

from assistant_core.core.exceptions import StoreError
from assistant_core.store.config_store import ConfigStore, session_db_path
from assistant_core.store.schema import DEFAULT_CONFIG
from assistant_core.store.types import ConfigValueType


class TestSeeding:
    def test_defaults_are_seeded(self, store):
        assert store.get("default_provider") == "cerebras"
        assert store.get_int("max_context_messages") == 20
        assert store.get_bool("auto_commit") is True
        assert store.get_bool("debug_mode") is False
        assert len(store.entries()) == len(DEFAULT_CONFIG)

    def test_reopen_does_not_overwrite_user_values(self, db_path):
        with ConfigStore(db_path) as first:
            first.set("default_provider", "openrouter")
            first.delete("auto_commit")

        with ConfigStore(db_path) as second:
            assert second.get("default_provider") == "openrouter"
            # Deleted seeds come back, existing rows are left alone
            assert second.get("auto_commit") == "true"
            keys = [entry.key for entry in second.entries()]
            assert len(keys) == len(set(keys)) == len(DEFAULT_CONFIG)

    def test_memory_database(self):
        with ConfigStore(":memory:") as store:
            assert store.path == ":memory:"
            assert store.get("default_provider") == "cerebras"


class TestVersioning:
    def test_set_stamps_version_above_all_rows(self, store):
        before = store.get_entry("temperature").version
        top = store.max_version()
        version = store.set("temperature", "0.2")
        assert version == top + 1
        assert version > before
        assert store.get_entry("temperature").version == version

    def test_same_value_twice_still_bumps(self, store):
        first = store.set("temperature", "0.5")
        second = store.set("temperature", "0.5")
        assert second == first + 1

    def test_max_version_moves_on_every_change(self, store):
        start = store.max_version()
        store.set("temperature", "0.1")
        after_update = store.max_version()
        store.set("brand_new_key", "x")
        after_insert = store.max_version()

        assert start < after_update < after_insert

    def test_new_key_is_stamped_above_existing_rows(self, store):
        top = store.max_version()
        assert store.set("fresh", "1") == top + 1

    def test_description_change_alone_keeps_version(self, store):
        entry = store.get_entry("temperature")
        store.execute(
            "UPDATE config SET description = ? WHERE key = ?", ("changed", "temperature")
        )
        assert store.get_entry("temperature").version == entry.version

    def test_writes_from_other_connection_are_visible(self, store, db_path):
        before = store.max_version()
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("UPDATE config SET value = 'x' WHERE key = 'default_provider'")
            conn.commit()
        finally:
            conn.close()

        assert store.get("default_provider") == "x"
        assert store.max_version() == before + 1


class TestTypedAccess:
    def test_missing_key(self, store):
        assert store.get("nope") is None
        assert store.get_entry("nope") is None
        assert store.get_bool("nope") is False
        assert store.get_int("nope") == 0

    @pytest.mark.parametrize(
        "raw,expected",
        [("true", True), ("TRUE", True), ("1", True), ("yes", False), ("false", False), ("", False)],
    )
    def test_get_bool_is_lenient(self, store, raw, expected):
        store.set("flag", raw)
        assert store.get_bool("flag") is expected

    @pytest.mark.parametrize(
        "raw,expected", [("42", 42), ("  7 items", 7), ("-3", -3), ("abc", 0), ("", 0)]
    )
    def test_get_int_is_lenient(self, store, raw, expected):
        store.set("count", raw)
        assert store.get_int("count") == expected

    def test_get_float_and_json(self, store):
        assert store.get_float("temperature") == pytest.approx(0.7)
        store.set("bad_float", "warm")
        assert store.get_float("bad_float") == 0.0

        store.set("payload", {"a": [1, 2]})
        assert store.get_json("payload") == {"a": [1, 2]}
        assert store.get_entry("payload").type is ConfigValueType.JSON
        store.set("broken", "{not json")
        assert store.get_json("broken") is None

    def test_python_values_infer_type(self, store):
        store.set("enabled", True)
        store.set("limit", 5)
        assert store.get("enabled") == "true"
        assert store.get_entry("enabled").type is ConfigValueType.BOOL
        assert store.get_entry("limit").type is ConfigValueType.INT

    def test_existing_type_kept_when_not_declared(self, store):
        store.set("max_context_messages", "30")
        entry = store.get_entry("max_context_messages")
        assert entry.type is ConfigValueType.INT
        assert entry.typed_value() == 30

    def test_invalid_declared_type_rejected(self, store):
        with pytest.raises(ValueError):
            store.set("key", "value", "float")

    def test_delete(self, store):
        store.set("temp_key", "v")
        assert store.delete("temp_key") is True
        assert store.delete("temp_key") is False


class TestSqlAccess:
    def test_execute_wraps_sqlite_errors(self, store):
        with pytest.raises(StoreError) as exc_info:
            store.execute("INSERT INTO missing_table VALUES (1)")
        assert str(exc_info.value).startswith("[store]")
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_execute_script_and_query(self, store):
        store.execute_script("CREATE TABLE IF NOT EXISTS notes (id INTEGER PRIMARY KEY, body TEXT);")
        store.executemany("INSERT INTO notes (body) VALUES (?)", [("a",), ("b",)])
        rows = store.query("SELECT body FROM notes ORDER BY id")
        assert [row["body"] for row in rows] == ["a", "b"]
        assert store.query_one("SELECT body FROM notes WHERE id = ?", (99,)) is None

    def test_close_is_idempotent(self, db_path):
        store = ConfigStore(db_path)
        store.close()
        store.close()


def test_session_db_path_is_timestamped(tmp_path):
    path = session_db_path(tmp_path)
    assert path.parent == tmp_path
    assert path.name.startswith("session_")
    assert path.suffix == ".db"


def test_unopenable_path_raises_store_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(StoreError):
        ConfigStore(blocker / "sub" / "db.sqlite")
