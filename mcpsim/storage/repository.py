"""CRUD operations for tools, providers, requests, cache items and PR integrations."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any

from mcpsim.models import (
    CacheItem,
    ContextProvider,
    PRIntegration,
    Tool,
    ToolRequest,
)

TOOL_FIELDS = {"name", "description", "schema", "category", "enabled"}
PROVIDER_FIELDS = {"name", "type", "config", "enabled"}
REQUEST_FIELDS = {"status", "error", "output"}
INTEGRATION_FIELDS = {"repo_url", "branch", "pr_number", "status", "mcp_context", "metadata"}
JSON_COLUMNS = {"schema", "config", "input", "output", "value", "metadata", "mcp_context"}


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _loads(text: str | None) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


class Repository:
    """Data access layer for the mcpsim SQLite database.

    Every create assigns the next id for its table and stamps the creation
    time. Callers must treat referenced tools and providers as possibly absent.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # Tools

    def get_tools(self) -> list[Tool]:
        rows = self._conn.execute("SELECT * FROM tools ORDER BY id").fetchall()
        return [self._row_to_tool(row) for row in rows]

    def get_tool(self, tool_id: int) -> Tool | None:
        row = self._conn.execute("SELECT * FROM tools WHERE id = ?", (tool_id,)).fetchone()
        return self._row_to_tool(row) if row else None

    def get_tool_by_name(self, name: str) -> Tool | None:
        row = self._conn.execute("SELECT * FROM tools WHERE name = ?", (name,)).fetchone()
        return self._row_to_tool(row) if row else None

    def create_tool(
        self,
        name: str,
        description: str,
        schema: dict,
        category: str = "general",
        enabled: bool = True,
    ) -> Tool:
        """Register a tool. Names are unique; a duplicate raises sqlite3.IntegrityError."""
        now = datetime.now().isoformat()
        cur = self._conn.execute(
            """INSERT INTO tools (name, description, schema, category, enabled, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (name, description, _dumps(schema), category, int(enabled), now, now),
        )
        self._conn.commit()
        return self.get_tool(cur.lastrowid)

    def update_tool(self, tool_id: int, **fields: Any) -> Tool:
        self._update("tools", tool_id, fields, TOOL_FIELDS, touch=True)
        return self.get_tool(tool_id)

    def delete_tool(self, tool_id: int) -> None:
        self._conn.execute("DELETE FROM tools WHERE id = ?", (tool_id,))
        self._conn.commit()

    # Context providers

    def get_providers(self) -> list[ContextProvider]:
        rows = self._conn.execute("SELECT * FROM context_providers ORDER BY id").fetchall()
        return [self._row_to_provider(row) for row in rows]

    def get_provider(self, provider_id: int) -> ContextProvider | None:
        row = self._conn.execute(
            "SELECT * FROM context_providers WHERE id = ?", (provider_id,)
        ).fetchone()
        return self._row_to_provider(row) if row else None

    def create_provider(
        self,
        name: str,
        type: str,
        config: dict | None = None,
        enabled: bool = True,
    ) -> ContextProvider:
        cur = self._conn.execute(
            """INSERT INTO context_providers (name, type, config, enabled, created_at)
            VALUES (?, ?, ?, ?, ?)""",
            (name, type, _dumps(config or {}), int(enabled), datetime.now().isoformat()),
        )
        self._conn.commit()
        return self.get_provider(cur.lastrowid)

    def update_provider(self, provider_id: int, **fields: Any) -> ContextProvider:
        self._update("context_providers", provider_id, fields, PROVIDER_FIELDS)
        return self.get_provider(provider_id)

    def delete_provider(self, provider_id: int) -> None:
        self._conn.execute("DELETE FROM context_providers WHERE id = ?", (provider_id,))
        self._conn.commit()

    # Request ledger

    def get_requests(self, tool_id: int | None = None, limit: int | None = None) -> list[ToolRequest]:
        """Ledger entries, newest first."""
        query = "SELECT * FROM requests WHERE 1=1"
        params: list = []
        if tool_id is not None:
            query += " AND tool_id = ?"
            params.append(tool_id)
        query += " ORDER BY id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_request(row) for row in rows]

    def get_request(self, request_id: int) -> ToolRequest | None:
        row = self._conn.execute("SELECT * FROM requests WHERE id = ?", (request_id,)).fetchone()
        return self._row_to_request(row) if row else None

    def create_request(
        self,
        tool_id: int | None,
        input: Any,
        output: Any,
        status: str,
        execution_time: int,
        error: str | None = None,
    ) -> ToolRequest:
        cur = self._conn.execute(
            """INSERT INTO requests (tool_id, input, output, status, error, execution_time, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                tool_id,
                _dumps(input),
                None if output is None else _dumps(output),
                status,
                error,
                execution_time,
                datetime.now().isoformat(),
            ),
        )
        self._conn.commit()
        return self.get_request(cur.lastrowid)

    def update_request(self, request_id: int, **fields: Any) -> ToolRequest:
        """Status corrections only; the ledger is otherwise append-only."""
        self._update("requests", request_id, fields, REQUEST_FIELDS)
        return self.get_request(request_id)

    # Context cache

    def get_cache_items(self, provider_id: int | None = None) -> list[CacheItem]:
        if provider_id is not None:
            rows = self._conn.execute(
                "SELECT * FROM context_cache WHERE provider_id = ? ORDER BY id", (provider_id,)
            ).fetchall()
        else:
            rows = self._conn.execute("SELECT * FROM context_cache ORDER BY id").fetchall()
        return [self._row_to_cache_item(row) for row in rows]

    def get_cache_item(self, key: str) -> CacheItem | None:
        """Look up a cache entry by key, most recently written first."""
        row = self._conn.execute(
            "SELECT * FROM context_cache WHERE key = ? ORDER BY created_at DESC, id DESC LIMIT 1",
            (key,),
        ).fetchone()
        return self._row_to_cache_item(row) if row else None

    def upsert_cache_item(
        self,
        provider_id: int,
        key: str,
        value: Any,
        metadata: dict,
        expires_at: datetime | None,
    ) -> CacheItem:
        """Insert or overwrite the entry for (provider_id, key)."""
        self._conn.execute(
            """INSERT INTO context_cache (provider_id, key, value, metadata, expires_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (provider_id, key) DO UPDATE SET
                value = excluded.value,
                metadata = excluded.metadata,
                expires_at = excluded.expires_at,
                created_at = excluded.created_at""",
            (
                provider_id,
                key,
                _dumps(value),
                _dumps(metadata),
                expires_at.isoformat() if expires_at else None,
                datetime.now().isoformat(),
            ),
        )
        self._conn.commit()
        row = self._conn.execute(
            "SELECT * FROM context_cache WHERE provider_id = ? AND key = ?", (provider_id, key)
        ).fetchone()
        return self._row_to_cache_item(row)

    def delete_cache_item(self, item_id: int) -> None:
        self._conn.execute("DELETE FROM context_cache WHERE id = ?", (item_id,))
        self._conn.commit()

    # PR integrations

    def get_integrations(self) -> list[PRIntegration]:
        rows = self._conn.execute("SELECT * FROM pr_integrations ORDER BY id").fetchall()
        return [self._row_to_integration(row) for row in rows]

    def get_integration(self, integration_id: int) -> PRIntegration | None:
        row = self._conn.execute(
            "SELECT * FROM pr_integrations WHERE id = ?", (integration_id,)
        ).fetchone()
        return self._row_to_integration(row) if row else None

    def get_integrations_for_pr(self, pr_number: int) -> list[PRIntegration]:
        """All integration records for a PR, newest first."""
        rows = self._conn.execute(
            "SELECT * FROM pr_integrations WHERE pr_number = ? ORDER BY id DESC", (pr_number,)
        ).fetchall()
        return [self._row_to_integration(row) for row in rows]

    def create_integration(
        self,
        repo_url: str,
        branch: str,
        status: str,
        pr_number: int | None = None,
        mcp_context: dict | None = None,
        metadata: dict | None = None,
    ) -> PRIntegration:
        now = datetime.now().isoformat()
        cur = self._conn.execute(
            """INSERT INTO pr_integrations
            (repo_url, branch, pr_number, status, mcp_context, metadata, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                repo_url,
                branch,
                pr_number,
                status,
                _dumps(mcp_context or {}),
                _dumps(metadata or {}),
                now,
                now,
            ),
        )
        self._conn.commit()
        return self.get_integration(cur.lastrowid)

    def update_integration(self, integration_id: int, **fields: Any) -> PRIntegration:
        self._update("pr_integrations", integration_id, fields, INTEGRATION_FIELDS, touch=True)
        return self.get_integration(integration_id)

    # Stats

    def get_stats(self) -> dict:
        """Get summary statistics about stored entities."""
        def count(sql: str) -> int:
            return self._conn.execute(sql).fetchone()[0]

        return {
            "total_tools": count("SELECT COUNT(*) FROM tools"),
            "enabled_tools": count("SELECT COUNT(*) FROM tools WHERE enabled = 1"),
            "total_providers": count("SELECT COUNT(*) FROM context_providers"),
            "total_requests": count("SELECT COUNT(*) FROM requests"),
            "failed_requests": count("SELECT COUNT(*) FROM requests WHERE status = 'failed'"),
            "cache_items": count("SELECT COUNT(*) FROM context_cache"),
            "integrations": count("SELECT COUNT(*) FROM pr_integrations"),
        }

    # Helpers

    def _update(
        self,
        table: str,
        row_id: int,
        fields: dict[str, Any],
        allowed: set[str],
        touch: bool = False,
    ) -> None:
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Cannot update {table} field(s): {', '.join(sorted(unknown))}")

        exists = self._conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)).fetchone()
        if not exists:
            raise LookupError(f"No {table} row with id {row_id}")

        assignments: list[str] = []
        params: list = []
        for name, value in fields.items():
            if name in JSON_COLUMNS:
                value = None if value is None else _dumps(value)
            elif name == "enabled":
                value = int(bool(value))
            assignments.append(f"{name} = ?")
            params.append(value)
        if touch:
            assignments.append("updated_at = ?")
            params.append(datetime.now().isoformat())
        if not assignments:
            return

        params.append(row_id)
        self._conn.execute(f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ?", params)
        self._conn.commit()

    def _row_to_tool(self, row: sqlite3.Row) -> Tool:
        return Tool(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            schema=_loads(row["schema"]) or {},
            category=row["category"],
            enabled=bool(row["enabled"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def _row_to_provider(self, row: sqlite3.Row) -> ContextProvider:
        return ContextProvider(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            config=_loads(row["config"]) or {},
            enabled=bool(row["enabled"]),
            created_at=_parse_ts(row["created_at"]),
        )

    def _row_to_request(self, row: sqlite3.Row) -> ToolRequest:
        return ToolRequest(
            id=row["id"],
            tool_id=row["tool_id"],
            input=_loads(row["input"]),
            output=_loads(row["output"]),
            status=row["status"],
            error=row["error"],
            execution_time=row["execution_time"],
            created_at=_parse_ts(row["created_at"]),
        )

    def _row_to_cache_item(self, row: sqlite3.Row) -> CacheItem:
        return CacheItem(
            id=row["id"],
            provider_id=row["provider_id"],
            key=row["key"],
            value=_loads(row["value"]),
            metadata=_loads(row["metadata"]) or {},
            expires_at=_parse_ts(row["expires_at"]),
            created_at=_parse_ts(row["created_at"]),
        )

    def _row_to_integration(self, row: sqlite3.Row) -> PRIntegration:
        return PRIntegration(
            id=row["id"],
            repo_url=row["repo_url"],
            branch=row["branch"],
            pr_number=row["pr_number"],
            status=row["status"],
            mcp_context=_loads(row["mcp_context"]) or {},
            metadata=_loads(row["metadata"]) or {},
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )
