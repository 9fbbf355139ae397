"""SQLite database setup and schema management."""

from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

MEMORY_DB = ":memory:"

# tool_id and provider_id are plain integers on purpose: deleting a tool or
# provider must not cascade into the ledger or the cache.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tools (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    description TEXT NOT NULL,
    schema TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'general',
    enabled INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS context_providers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    config TEXT NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS requests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tool_id INTEGER,
    input TEXT,
    output TEXT,
    status TEXT NOT NULL,
    error TEXT,
    execution_time INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS context_cache (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    provider_id INTEGER,
    key TEXT NOT NULL,
    value TEXT,
    metadata TEXT,
    expires_at TIMESTAMP,
    created_at TIMESTAMP,
    UNIQUE (provider_id, key)
);

CREATE TABLE IF NOT EXISTS pr_integrations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_url TEXT NOT NULL,
    branch TEXT NOT NULL,
    pr_number INTEGER,
    status TEXT NOT NULL,
    mcp_context TEXT,
    metadata TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_requests_tool ON requests(tool_id);
CREATE INDEX IF NOT EXISTS idx_requests_status ON requests(status);
CREATE INDEX IF NOT EXISTS idx_cache_key ON context_cache(key);
CREATE INDEX IF NOT EXISTS idx_cache_provider ON context_cache(provider_id);
CREATE INDEX IF NOT EXISTS idx_integrations_pr ON pr_integrations(pr_number);
"""


def get_connection(db_path: Path | str) -> sqlite3.Connection:
    """Create or open a SQLite database with the mcpsim schema.

    Pass ":memory:" for a throwaway in-process store.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if str(db_path) != MEMORY_DB:
        conn.execute("PRAGMA journal_mode=WAL")

    conn.executescript(SCHEMA_SQL)
    conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
    conn.commit()

    return conn
