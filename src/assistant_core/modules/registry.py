"""Module registry: loads enabled modules and hooks into an event index.

The index is derived state. ``reload`` rebuilds it wholesale from the store
and swaps it in under the exclusive side of a read-write lock; lookups take
the shared side, so they never block each other, only a concurrent reload.
"""

from __future__ import annotations

import heapq
import json
import sqlite3
from dataclasses import dataclass, field

from assistant_core.core.exceptions import ModuleRegistrationError, StoreError
from assistant_core.modules.types import WILDCARD_EVENT, Hook, Module
from assistant_core.runtime.notifier import CONFIG_CHANGED, ChangeNotifier
from assistant_core.store.config_store import ConfigStore
from assistant_core.utils.locks import ReadWriteLock
from assistant_core.utils.logging import get_logger

logger = get_logger("modules.registry")

_UPSERT_MODULE_SQL = """
INSERT INTO modules (module_id, name, version, enabled, priority, config, schema_sql)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(module_id) DO UPDATE SET
    name = excluded.name,
    version = excluded.version,
    enabled = excluded.enabled,
    priority = excluded.priority,
    config = excluded.config,
    schema_sql = excluded.schema_sql,
    updated_at = strftime('%s', 'now')
"""

_UPSERT_HOOK_SQL = """
INSERT INTO module_hooks (hook_id, module_id, event, handler, priority, enabled, config)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(hook_id) DO UPDATE SET
    module_id = excluded.module_id,
    event = excluded.event,
    handler = excluded.handler,
    priority = excluded.priority,
    enabled = excluded.enabled,
    config = excluded.config
"""

_SELECT_MODULES_SQL = """
SELECT module_id, name, version, enabled, priority, config, schema_sql
FROM modules WHERE enabled = 1 ORDER BY priority, rowid
"""

# Hooks of disabled modules stay in the table but are not indexed
_SELECT_HOOKS_SQL = """
SELECT h.hook_id, h.module_id, h.event, h.handler, h.priority, h.enabled, h.config
FROM module_hooks h
JOIN modules m ON m.module_id = h.module_id
WHERE h.enabled = 1 AND m.enabled = 1
ORDER BY h.priority, h.rowid
"""


@dataclass(frozen=True, order=True)
class _IndexedHook:
    """Hook plus its sort key: priority, then position in the reload query."""

    priority: int
    seq: int
    hook: Hook = field(compare=False)


class ModuleRegistry:
    """In-memory view of enabled modules and their hooks."""

    def __init__(self, store: ConfigStore, notifier: ChangeNotifier | None = None) -> None:
        """Create the registry and load the current snapshot.

        Args:
            store: Persistent store holding the module and hook tables.
            notifier: Optional change notifier; when given, every detected
                store change triggers a reload.

        Raises:
            StoreError: If the initial load fails.
        """
        self._store = store
        self._lock = ReadWriteLock()
        self._modules: dict[str, Module] = {}
        self._hooks: dict[str, list[_IndexedHook]] = {}
        self._wildcard: list[_IndexedHook] = []

        self.reload()
        if notifier is not None:
            self.attach(notifier)

    def attach(self, notifier: ChangeNotifier) -> None:
        """Reload whenever ``notifier`` reports a change."""
        notifier.on_change(self._on_change)

    def _on_change(self, event: str) -> None:
        if event != CONFIG_CHANGED:
            return
        try:
            self.reload()
        except StoreError as e:
            logger.warning("Background reload failed, keeping previous snapshot: %s", e)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_module(self, module: Module) -> None:
        """Insert or fully replace a module row, then reload.

        If the module carries a schema script it is executed after the upsert.
        A failing script raises ``ModuleRegistrationError`` with the row
        already committed; calling again with the same module is safe.

        Raises:
            StoreError: If the upsert fails.
            ModuleRegistrationError: If the schema script fails.
        """
        self._store.execute(
            _UPSERT_MODULE_SQL,
            (
                module.id,
                module.name,
                module.version,
                int(module.enabled),
                module.priority,
                json.dumps(module.config),
                module.schema_sql,
            ),
        )

        if module.schema_sql:
            try:
                self._store.execute_script(module.schema_sql)
            except StoreError as e:
                raise ModuleRegistrationError(
                    f"Schema extension for module {module.id!r} failed: {e}"
                ) from e

        logger.info("Registered module %s (%s %s)", module.id, module.name, module.version)
        self.reload()

    def register_hook(self, hook: Hook) -> Hook:
        """Insert or update a hook row, then reload.

        Returns:
            The stored hook, carrying a generated id if it had none.

        Raises:
            ModuleRegistrationError: If the owning module does not exist.
            StoreError: If the upsert fails for another reason.
        """
        hook = hook.with_id()
        try:
            self._store.execute(
                _UPSERT_HOOK_SQL,
                (
                    hook.id,
                    hook.module_id,
                    hook.event,
                    hook.handler,
                    hook.priority,
                    int(hook.enabled),
                    json.dumps(hook.config),
                ),
            )
        except StoreError as e:
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise ModuleRegistrationError(
                    f"Hook {hook.id} references unknown module {hook.module_id!r}"
                ) from e
            raise

        logger.info(
            "Registered hook %s: %s -> %s (module %s)",
            hook.id,
            hook.event,
            hook.handler,
            hook.module_id,
        )
        self.reload()
        return hook

    def set_module_enabled(self, module_id: str, enabled: bool) -> bool:
        """Toggle a module; returns False if the module does not exist."""
        changed = self._store.execute(
            "UPDATE modules SET enabled = ?, updated_at = strftime('%s', 'now') "
            "WHERE module_id = ?",
            (int(enabled), module_id),
        )
        self.reload()
        return changed > 0

    def delete_module(self, module_id: str) -> bool:
        """Delete a module row and, by cascade, its hooks."""
        changed = self._store.execute("DELETE FROM modules WHERE module_id = ?", (module_id,))
        self.reload()
        return changed > 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Rebuild the module map and event index from the store.

        Raises:
            StoreError: If the store cannot be queried. The previous snapshot
                stays in place.
        """
        with self._lock.write_locked():
            module_rows = self._store.query(_SELECT_MODULES_SQL)
            hook_rows = self._store.query(_SELECT_HOOKS_SQL)

            modules: dict[str, Module] = {}
            for row in module_rows:
                module = _row_to_module(row)
                modules[module.id] = module

            hooks: dict[str, list[_IndexedHook]] = {}
            wildcard: list[_IndexedHook] = []
            for seq, row in enumerate(hook_rows):
                hook = _row_to_hook(row)
                entry = _IndexedHook(hook.priority, seq, hook)
                if hook.is_wildcard:
                    wildcard.append(entry)
                else:
                    hooks.setdefault(hook.event, []).append(entry)

            self._modules = modules
            self._hooks = hooks
            self._wildcard = wildcard

        logger.debug(
            "Registry reloaded: %d module(s), %d hook(s)",
            len(modules),
            len(hook_rows),
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def hooks_for(self, event: str) -> list[Hook]:
        """Hooks to run for ``event``: exact and wildcard, interleaved by priority."""
        with self._lock.read_locked():
            exact = self._hooks.get(event, []) if event != WILDCARD_EVENT else []
            wildcard = self._wildcard
        return [entry.hook for entry in heapq.merge(exact, wildcard)]

    def get_module(self, module_id: str) -> Module | None:
        with self._lock.read_locked():
            return self._modules.get(module_id)

    def modules(self) -> list[Module]:
        """Loaded modules in ascending priority."""
        with self._lock.read_locked():
            return list(self._modules.values())

    def stored_modules(self) -> list[Module]:
        """Every module row, disabled ones included, read from the store."""
        rows = self._store.query(
            "SELECT module_id, name, version, enabled, priority, config, schema_sql "
            "FROM modules ORDER BY priority, rowid"
        )
        return [_row_to_module(row) for row in rows]

    def hooks(self) -> list[Hook]:
        """Every loaded hook in dispatch order."""
        with self._lock.read_locked():
            entries = [entry for bucket in self._hooks.values() for entry in bucket]
            entries.extend(self._wildcard)
        return [entry.hook for entry in sorted(entries)]

    def events(self) -> list[str]:
        """Event names that have at least one exact hook."""
        with self._lock.read_locked():
            return sorted(self._hooks)


def _row_to_module(row: sqlite3.Row) -> Module:
    return Module(
        id=row["module_id"],
        name=row["name"],
        version=row["version"],
        enabled=bool(row["enabled"]),
        priority=row["priority"],
        config=_load_json(row["config"]),
        schema_sql=row["schema_sql"],
    )


def _row_to_hook(row: sqlite3.Row) -> Hook:
    return Hook(
        id=row["hook_id"],
        module_id=row["module_id"],
        event=row["event"],
        handler=row["handler"],
        priority=row["priority"],
        enabled=bool(row["enabled"]),
        config=_load_json(row["config"]),
    )


def _load_json(text: str | None) -> dict:
    if not text:
        return {}
    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Ignoring malformed JSON config: %r", text)
        return {}
    return data if isinstance(data, dict) else {}
