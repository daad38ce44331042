"""SQL schema and first-run seed data for the persistent store."""

SCHEMA_SQL = """
-- ============================================================
-- CONFIG: Hot-reloadable configuration
-- ============================================================
CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'string' CHECK (type IN ('string', 'int', 'bool', 'json')),
    description TEXT,
    updated_at INTEGER DEFAULT (strftime('%s', 'now')),
    version INTEGER NOT NULL DEFAULT 1
);

-- New rows and value/type updates are stamped above every other row, so the
-- per-key version always grows and MAX(version) moves on each change.
CREATE TRIGGER IF NOT EXISTS config_version_stamp
AFTER INSERT ON config
BEGIN
    UPDATE config
    SET version = (SELECT COALESCE(MAX(version), 0) FROM config WHERE key != NEW.key) + 1
    WHERE key = NEW.key;
END;

CREATE TRIGGER IF NOT EXISTS config_version_bump
AFTER UPDATE OF value, type ON config
BEGIN
    UPDATE config
    SET version = (SELECT MAX(version) FROM config) + 1,
        updated_at = strftime('%s', 'now')
    WHERE key = NEW.key;
END;

-- ============================================================
-- MODULES: Extensible module system (hot-reloadable)
-- ============================================================
CREATE TABLE IF NOT EXISTS modules (
    module_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    version TEXT NOT NULL DEFAULT '1.0.0',
    enabled INTEGER NOT NULL DEFAULT 1,
    priority INTEGER NOT NULL DEFAULT 100,
    config TEXT NOT NULL DEFAULT '{}',
    schema_sql TEXT,
    created_at INTEGER DEFAULT (strftime('%s', 'now')),
    updated_at INTEGER DEFAULT (strftime('%s', 'now'))
);

-- ============================================================
-- MODULE_HOOKS: Event hooks for modules
-- ============================================================
CREATE TABLE IF NOT EXISTS module_hooks (
    hook_id TEXT PRIMARY KEY,
    module_id TEXT NOT NULL,
    event TEXT NOT NULL,
    handler TEXT NOT NULL,
    priority INTEGER NOT NULL DEFAULT 100,
    enabled INTEGER NOT NULL DEFAULT 1,
    config TEXT NOT NULL DEFAULT '{}',

    FOREIGN KEY(module_id) REFERENCES modules(module_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_hooks_event ON module_hooks(event, enabled, priority);

-- ============================================================
-- DEBUG_EVENTS: Mirror of traced hook executions
-- ============================================================
CREATE TABLE IF NOT EXISTS debug_events (
    id TEXT PRIMARY KEY,
    trace_id TEXT,
    timestamp TEXT NOT NULL,
    level TEXT NOT NULL,
    event TEXT NOT NULL,
    module TEXT,
    message TEXT,
    data TEXT NOT NULL DEFAULT '{}',
    duration_ms REAL NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_debug_events_trace ON debug_events(trace_id, timestamp);
"""

SYSTEM_PROMPT = (
    "You are a coding assistant. You help users write, modify, and understand "
    "code. When asked to create or modify files, output the complete file "
    "content in markdown code blocks with the filename."
)

# (key, value, type, description)
DEFAULT_CONFIG: list[tuple[str, str, str, str]] = [
    ("default_provider", "cerebras", "string", "Default LLM provider"),
    ("auto_commit", "true", "bool", "Auto-commit changes to git"),
    ("confirm_changes", "true", "bool", "Ask confirmation before applying changes"),
    ("stream_output", "true", "bool", "Stream LLM output token by token"),
    ("max_context_messages", "20", "int", "Max messages to include in context"),
    ("temperature", "0.7", "string", "LLM temperature"),
    ("system_prompt", SYSTEM_PROMPT, "string", "System prompt for LLM"),
    ("debug_mode", "false", "bool", "Trace every hook dispatch"),
]

SEED_CONFIG_SQL = (
    "INSERT OR IGNORE INTO config (key, value, type, description) VALUES (?, ?, ?, ?)"
)
