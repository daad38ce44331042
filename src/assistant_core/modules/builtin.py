"""Builtin modules shipped with the runtime.

Each module registers itself (row, schema extension and hooks) on
construction. Registration is an upsert, so constructing a module again on
an existing database is harmless.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from assistant_core.modules.handlers import BuiltinHandler
from assistant_core.modules.registry import ModuleRegistry
from assistant_core.modules.types import WILDCARD_EVENT, Hook, Module
from assistant_core.store.config_store import ConfigStore
from assistant_core.debug.tracer import DebugTracer
from assistant_core.utils.logging import get_logger

logger = get_logger("modules.builtin")

LEARNING_MODULE_ID = "learning"
DEBUG_MODULE_ID = "debug"

# Suggestions below this confidence are not returned
MIN_SUGGESTION_CONFIDENCE = 0.7

LEARNING_SCHEMA = """
-- Intent patterns learned from user behavior
CREATE TABLE IF NOT EXISTS learned_intents (
    id TEXT PRIMARY KEY,
    input_pattern TEXT NOT NULL,
    detected_intent TEXT NOT NULL,
    confidence REAL DEFAULT 0.5,
    success_count INTEGER DEFAULT 0,
    failure_count INTEGER DEFAULT 0,
    last_used_at INTEGER,
    created_at INTEGER DEFAULT (strftime('%s', 'now')),
    UNIQUE(input_pattern, detected_intent)
);

CREATE INDEX IF NOT EXISTS idx_learned_intents ON learned_intents(input_pattern, confidence DESC);

-- Code patterns for suggestions
CREATE TABLE IF NOT EXISTS code_patterns (
    id TEXT PRIMARY KEY,
    language TEXT NOT NULL,
    pattern_type TEXT NOT NULL,
    trigger_text TEXT NOT NULL,
    suggestion TEXT NOT NULL,
    usage_count INTEGER DEFAULT 0,
    created_at INTEGER DEFAULT (strftime('%s', 'now'))
);

-- User preferences learned over time
CREATE TABLE IF NOT EXISTS user_preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    confidence REAL DEFAULT 0.5,
    updated_at INTEGER DEFAULT (strftime('%s', 'now'))
);
"""

DEBUG_SCHEMA = """
-- Debug traces for LLM analysis
CREATE TABLE IF NOT EXISTS debug_traces (
    trace_id TEXT PRIMARY KEY,
    parent_id TEXT,
    event TEXT NOT NULL,
    module TEXT,
    start_time INTEGER,
    end_time INTEGER,
    duration_ms INTEGER,
    status TEXT DEFAULT 'running',
    data TEXT DEFAULT '{}',
    error TEXT,
    created_at INTEGER DEFAULT (strftime('%s', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_traces_event ON debug_traces(event, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_traces_status ON debug_traces(status, created_at DESC);

-- Assertions for automated testing
CREATE TABLE IF NOT EXISTS debug_assertions (
    id TEXT PRIMARY KEY,
    trace_id TEXT,
    name TEXT NOT NULL,
    expected TEXT,
    actual TEXT,
    passed INTEGER,
    message TEXT,
    created_at INTEGER DEFAULT (strftime('%s', 'now')),

    FOREIGN KEY(trace_id) REFERENCES debug_traces(trace_id) ON DELETE CASCADE
);

-- Test cases for autonomous testing
CREATE TABLE IF NOT EXISTS test_cases (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    input TEXT NOT NULL,
    expected_output TEXT,
    expected_intent TEXT,
    tags TEXT DEFAULT '[]',
    enabled INTEGER DEFAULT 1,
    last_run_at INTEGER,
    last_result TEXT,
    created_at INTEGER DEFAULT (strftime('%s', 'now'))
);
"""

DEBUG_PROMPT = """Analyze the following debug information and provide:
1. Root cause analysis for any failures
2. Suggested fixes
3. Patterns that could be optimized

## Failed Assertions
{failures}

## Debug Log
{debug_log}

Please provide actionable recommendations."""


class LearningModule:
    """Learns intent patterns and user preferences from interactions."""

    def __init__(self, registry: ModuleRegistry, store: ConfigStore) -> None:
        self._registry = registry
        self._store = store

        registry.register_module(
            Module(
                id=LEARNING_MODULE_ID,
                name="Pattern Learning",
                version="1.0.0",
                enabled=True,
                priority=50,
                config={"min_success_count": 3, "decay_days": 30},
                schema_sql=LEARNING_SCHEMA,
            )
        )
        registry.register_hook(
            Hook(
                id=f"{LEARNING_MODULE_ID}.chat_complete",
                module_id=LEARNING_MODULE_ID,
                event="chat_complete",
                handler=BuiltinHandler.PATTERN_LEARN.value,
                priority=100,
            )
        )

    def record_success(self, input_pattern: str, intent: str) -> None:
        """Count a correct intent detection for ``input_pattern``."""
        self._store.execute(
            """
            INSERT INTO learned_intents
                (id, input_pattern, detected_intent, success_count, confidence, last_used_at)
            VALUES (?, ?, ?, 1, 1.0, strftime('%s', 'now'))
            ON CONFLICT(input_pattern, detected_intent) DO UPDATE SET
                success_count = success_count + 1,
                confidence = CAST(success_count + 1 AS REAL)
                    / (success_count + 1 + failure_count),
                last_used_at = strftime('%s', 'now')
            """,
            (str(uuid.uuid4()), input_pattern, intent),
        )

    def record_failure(self, input_pattern: str, intent: str) -> None:
        """Count a wrong intent detection for ``input_pattern``."""
        self._store.execute(
            """
            UPDATE learned_intents
            SET failure_count = failure_count + 1,
                confidence = CAST(success_count AS REAL) / (success_count + failure_count + 1)
            WHERE input_pattern = ? AND detected_intent = ?
            """,
            (input_pattern, intent),
        )

    def get_suggestion(self, text: str) -> tuple[str, float] | None:
        """Best learned intent for patterns contained in ``text``, if confident."""
        row = self._store.query_one(
            """
            SELECT detected_intent, confidence
            FROM learned_intents
            WHERE input_pattern LIKE ?
            AND confidence >= ?
            ORDER BY confidence DESC, success_count DESC
            LIMIT 1
            """,
            (f"%{text}%", MIN_SUGGESTION_CONFIDENCE),
        )
        if row is None:
            return None
        return row["detected_intent"], float(row["confidence"])

    def learn_preference(self, key: str, value: str) -> None:
        """Store a preference; repeated observations raise its confidence."""
        self._store.execute(
            """
            INSERT INTO user_preferences (key, value, confidence)
            VALUES (?, ?, 0.6)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                confidence = MIN(1.0, confidence + 0.1),
                updated_at = strftime('%s', 'now')
            """,
            (key, value),
        )

    def get_preference(self, key: str) -> tuple[str, float] | None:
        row = self._store.query_one(
            "SELECT value, confidence FROM user_preferences WHERE key = ?", (key,)
        )
        if row is None:
            return None
        return row["value"], float(row["confidence"])


class DebugModule:
    """Persistent traces, assertions and test cases for autonomous debugging."""

    def __init__(
        self,
        registry: ModuleRegistry,
        store: ConfigStore,
        tracer: DebugTracer | None = None,
        *,
        trace_all: bool = False,
    ) -> None:
        """Register the module and its wildcard capture hook.

        The capture hook runs on every emitted event, so it is stored
        disabled unless ``trace_all`` is set.
        """
        self._registry = registry
        self._store = store
        self._tracer = tracer

        registry.register_module(
            Module(
                id=DEBUG_MODULE_ID,
                name="Debug & Testing",
                version="1.0.0",
                enabled=True,
                priority=1,
                config={"trace_all": trace_all, "log_to_db": True, "max_log_size": 10000},
                schema_sql=DEBUG_SCHEMA,
            )
        )
        registry.register_hook(
            Hook(
                id=f"{DEBUG_MODULE_ID}.capture",
                module_id=DEBUG_MODULE_ID,
                event=WILDCARD_EVENT,
                handler=BuiltinHandler.DEBUG.value,
                priority=1,
                enabled=trace_all,
            )
        )

    def start_trace(self, event: str, module: str | None = None, parent_id: str | None = None) -> str:
        """Open a persisted trace and return its id."""
        trace_id = str(uuid.uuid4())
        self._store.execute(
            """
            INSERT INTO debug_traces (trace_id, parent_id, event, module, start_time, status)
            VALUES (?, ?, ?, ?, CAST(strftime('%s', 'now') AS INTEGER) * 1000, 'running')
            """,
            (trace_id, parent_id, event, module),
        )
        return trace_id

    def end_trace(self, trace_id: str, error: BaseException | str | None = None) -> None:
        """Close a trace as success, or as error when ``error`` is given."""
        status = "success" if error is None else "error"
        self._store.execute(
            """
            UPDATE debug_traces
            SET end_time = CAST(strftime('%s', 'now') AS INTEGER) * 1000,
                duration_ms = CAST(strftime('%s', 'now') AS INTEGER) * 1000 - start_time,
                status = ?,
                error = ?
            WHERE trace_id = ?
            """,
            (status, None if error is None else str(error), trace_id),
        )

    def add_assertion(self, trace_id: str, name: str, expected: str, actual: str) -> bool:
        """Record an assertion on a trace; returns whether it passed."""
        passed = expected == actual
        message = "OK" if passed else f"FAILED: expected {expected}, got {actual}"
        self._store.execute(
            """
            INSERT INTO debug_assertions (id, trace_id, name, expected, actual, passed, message)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (str(uuid.uuid4()), trace_id, name, expected, actual, int(passed), message),
        )
        return passed

    def add_test_case(
        self,
        name: str,
        input_text: str,
        *,
        expected_output: str | None = None,
        expected_intent: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        case_id: str | None = None,
    ) -> str:
        """Store a test case and return its id."""
        case_id = case_id or str(uuid.uuid4())
        self._store.execute(
            """
            INSERT OR REPLACE INTO test_cases
                (id, name, description, input, expected_output, expected_intent, tags)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                case_id,
                name,
                description,
                input_text,
                expected_output,
                expected_intent,
                json.dumps(tags or []),
            ),
        )
        return case_id

    def run_test_case(self, case_id: str) -> bool:
        """Mark an enabled test case as run under a new trace.

        Executing the input is up to the chat loop; this records that the
        case ran. Returns False if the case does not exist or is disabled.
        """
        row = self._store.query_one(
            "SELECT name FROM test_cases WHERE id = ? AND enabled = 1", (case_id,)
        )
        if row is None:
            return False

        trace_id = self.start_trace("test_case", DEBUG_MODULE_ID)
        self._store.execute(
            "UPDATE test_cases SET last_run_at = strftime('%s', 'now'), last_result = ? "
            "WHERE id = ?",
            (trace_id, case_id),
        )
        self.end_trace(trace_id)
        return True

    def failed_assertions(self, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent failed assertions joined with their trace."""
        if limit <= 0:
            limit = 50
        rows = self._store.query(
            """
            SELECT a.name, a.expected, a.actual, a.message, t.event, t.module
            FROM debug_assertions a
            JOIN debug_traces t ON a.trace_id = t.trace_id
            WHERE a.passed = 0
            ORDER BY a.created_at DESC, a.rowid DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [dict(row) for row in rows]

    def debug_prompt(self) -> str:
        """Prompt asking an LLM to analyze failures and the trace log."""
        failures = json.dumps(self.failed_assertions(20), indent=2)
        debug_log = self._tracer.get_log_json() if self._tracer is not None else "[]"
        return DEBUG_PROMPT.format(failures=failures, debug_log=debug_log)
