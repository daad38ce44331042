"""SQLite-backed persistent store: config rows with per-key versioning.

The store is the single source of truth for configuration, modules and
hooks. Every other component derives its in-memory state from it.

Thread safety: one connection opened with ``check_same_thread=False``; every
statement runs under an internal lock and commits before the lock is released,
so readers never observe an uncommitted value.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from assistant_core.core.exceptions import StoreError
from assistant_core.store.schema import DEFAULT_CONFIG, SCHEMA_SQL, SEED_CONFIG_SQL
from assistant_core.store.types import (
    ConfigEntry,
    ConfigValueType,
    parse_bool,
    parse_float,
    parse_int,
    parse_json,
)
from assistant_core.utils.logging import get_logger

if TYPE_CHECKING:
    from assistant_core.debug.types import DebugEvent

logger = get_logger("store.config_store")

SESSION_DIR = ".assistant"
MEMORY_DB = ":memory:"


def session_db_path(base_dir: Path | str = SESSION_DIR) -> Path:
    """Build a fresh timestamped database path under ``base_dir``."""
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return Path(base_dir) / f"session_{timestamp}.db"


def latest_session_db(base_dir: Path | str = SESSION_DIR) -> Path | None:
    """Return the newest session database under ``base_dir``, if any."""
    sessions = sorted(Path(base_dir).glob("session_*.db"))
    return sessions[-1] if sessions else None


class ConfigStore:
    """Durable key/value configuration plus the module and hook tables."""

    def __init__(self, db_path: Path | str | None = None, *, busy_timeout_ms: int = 5000):
        """Open (and create if needed) the database.

        Args:
            db_path: SQLite path, ``":memory:"``, or None for a new session
                database under ``.assistant/``.
            busy_timeout_ms: How long SQLite waits on a lock held by another
                connection before failing.

        Raises:
            StoreError: If the database cannot be opened or initialized.
        """
        if db_path is None:
            db_path = session_db_path()
        self._db_path = str(db_path)
        self._lock = threading.RLock()
        self._closed = False

        try:
            if self._db_path != MEMORY_DB:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=busy_timeout_ms / 1000,
            )
            self._conn.row_factory = sqlite3.Row
            if self._db_path != MEMORY_DB:
                self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            self._init_schema()
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Failed to open database {self._db_path}: {e}") from e

        logger.info("Config store opened: %s", self._db_path)

    def _init_schema(self) -> None:
        """Create tables and seed defaults; re-running never duplicates rows."""
        self._conn.executescript(SCHEMA_SQL)
        self._conn.executemany(SEED_CONFIG_SQL, DEFAULT_CONFIG)
        self._conn.commit()

    @property
    def path(self) -> str:
        """The database file path."""
        return self._db_path

    # ------------------------------------------------------------------
    # Config access
    # ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None when absent."""
        row = self.query_one("SELECT value FROM config WHERE key = ?", (key,))
        return None if row is None else row["value"]

    def get_entry(self, key: str) -> ConfigEntry | None:
        """Return the full config row for ``key``, or None when absent."""
        row = self.query_one(
            "SELECT key, value, type, description, version, updated_at "
            "FROM config WHERE key = ?",
            (key,),
        )
        return None if row is None else _row_to_entry(row)

    def entries(self) -> list[ConfigEntry]:
        """Return every config row ordered by key."""
        rows = self.query(
            "SELECT key, value, type, description, version, updated_at "
            "FROM config ORDER BY key"
        )
        return [_row_to_entry(row) for row in rows]

    def set(
        self,
        key: str,
        value: Any,
        value_type: ConfigValueType | str | None = None,
        description: str | None = None,
    ) -> int:
        """Insert or update ``key`` and return its new version.

        Non-string values are stored as text (JSON for dicts and lists, with
        the type recorded as ``json``). The version bump happens inside the
        database so concurrent writers in other processes agree on it.
        """
        text, inferred = _to_text(value)
        declared = ConfigValueType(value_type) if value_type else inferred

        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO config (key, value, type, description)
                    VALUES (?, ?, COALESCE(?, 'string'), ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        type = COALESCE(?, config.type),
                        description = COALESCE(excluded.description, config.description)
                    """,
                    (
                        key,
                        text,
                        declared.value if declared else None,
                        description,
                        declared.value if declared else None,
                    ),
                )
                row = self._conn.execute(
                    "SELECT version FROM config WHERE key = ?", (key,)
                ).fetchone()
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(f"Failed to set config key {key!r}: {e}") from e

        version = int(row["version"])
        logger.debug("Config key %s set (version %d)", key, version)
        return version

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns True if a row was deleted."""
        return self.execute("DELETE FROM config WHERE key = ?", (key,)) > 0

    def get_bool(self, key: str) -> bool:
        """Return ``key`` as a bool; anything but "true"/"1" is False."""
        return parse_bool(self.get(key))

    def get_int(self, key: str) -> int:
        """Return the leading integer of ``key``'s value, or 0."""
        return parse_int(self.get(key))

    def get_float(self, key: str) -> float:
        """Return ``key`` as a float, or 0.0."""
        return parse_float(self.get(key))

    def get_json(self, key: str) -> Any:
        """Return ``key`` decoded as JSON, or None."""
        return parse_json(self.get(key))

    def max_version(self) -> int:
        """Highest version across all config rows; moves on every change."""
        row = self.query_one("SELECT COALESCE(MAX(version), 0) AS v FROM config")
        return int(row["v"]) if row is not None else 0

    # ------------------------------------------------------------------
    # Generic SQL access
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one write statement and return the number of affected rows."""
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(f"Statement failed: {e}") from e
            return cursor.rowcount

    def executemany(self, sql: str, rows: Iterable[Sequence[Any]]) -> int:
        """Run one write statement for each parameter row, atomically."""
        with self._lock:
            try:
                cursor = self._conn.executemany(sql, rows)
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(f"Batch statement failed: {e}") from e
            return cursor.rowcount

    def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script (used for schema extensions)."""
        with self._lock:
            try:
                self._conn.executescript(script)
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(f"Script failed: {e}") from e

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        """Run a read query and return all rows."""
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Query failed: {e}") from e

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        """Run a read query and return the first row, if any."""
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Query failed: {e}") from e

    # ------------------------------------------------------------------
    # Debug event mirror
    # ------------------------------------------------------------------

    def insert_debug_event(self, event: DebugEvent) -> None:
        """Persist one debug event for offline analysis."""
        self.execute(
            """
            INSERT OR REPLACE INTO debug_events
                (id, trace_id, timestamp, level, event, module, message, data, duration_ms)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.trace_id,
                event.timestamp.isoformat(),
                event.level.value,
                event.event,
                event.module,
                event.message,
                json.dumps(event.data, default=str),
                event.duration_ms,
            ),
        )

    def recent_debug_events(self, limit: int = 50) -> list[dict[str, Any]]:
        """Return the most recent persisted debug events, newest first."""
        rows = self.query(
            "SELECT * FROM debug_events ORDER BY timestamp DESC LIMIT ?", (limit,)
        )
        events = []
        for row in rows:
            item = dict(row)
            item["data"] = parse_json(item.get("data")) or {}
            events.append(item)
        return events

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Checkpoint the WAL and close the connection. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                if self._db_path != MEMORY_DB:
                    self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            except sqlite3.Error as e:
                logger.debug("WAL checkpoint failed on close: %s", e)
            finally:
                self._conn.close()
        logger.debug("Config store closed: %s", self._db_path)

    def __enter__(self) -> ConfigStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _row_to_entry(row: sqlite3.Row) -> ConfigEntry:
    return ConfigEntry(
        key=row["key"],
        value=row["value"],
        type=row["type"] or ConfigValueType.STRING,
        description=row["description"],
        version=row["version"],
        updated_at=row["updated_at"] or 0,
    )


def _to_text(value: Any) -> tuple[str, ConfigValueType | None]:
    """Render a Python value as stored text, inferring its type when obvious."""
    if isinstance(value, bool):
        return ("true" if value else "false"), ConfigValueType.BOOL
    if isinstance(value, int):
        return str(value), ConfigValueType.INT
    if isinstance(value, (dict, list)):
        return json.dumps(value), ConfigValueType.JSON
    return str(value), None
