"""Synthetic extraction routines, one per provider type.

Each routine takes a ContextProvider and returns ContextExtractionResults.
No real I/O happens: file contents, commits, API catalogs and database
schemas are all fabricated from the provider's config.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import Any

from mcpsim.models import ContextExtractionResult, ContextProvider

ExtractionRoutine = Callable[[ContextProvider], Awaitable[list[ContextExtractionResult]]]

SAMPLE_FILES = [
    "src/index.ts",
    "src/components/App.tsx",
    "src/utils/helpers.ts",
    "README.md",
]

FILE_TEMPLATES = {
    "src/index.ts": (
        "import express from 'express';\n"
        "import { mcpSimulator } from './services/mcp-simulator';\n\n"
        "const app = express();\n"
        "app.use(express.json());\n\n"
        "app.post('/api/mcp/execute', async (req, res) => {\n"
        "  const { toolId, params } = req.body;\n"
        "  const result = await mcpSimulator.executeTool(toolId, params);\n"
        "  res.json(result);\n"
        "});\n\n"
        "app.listen(3000);"
    ),
    "src/components/App.tsx": (
        "import React from 'react';\n"
        "import { McpToolList } from './McpToolList';\n\n"
        "export function App() {\n"
        "  return (\n"
        '    <div className="app">\n'
        "      <h1>MCP Simulator</h1>\n"
        "      <McpToolList />\n"
        "    </div>\n"
        "  );\n"
        "}"
    ),
    "src/utils/helpers.ts": (
        "export function formatDate(date: Date): string {\n"
        "  return date.toISOString();\n"
        "}\n\n"
        "export function parseJSON(text: string): any {\n"
        "  try {\n"
        "    return JSON.parse(text);\n"
        "  } catch {\n"
        "    return null;\n"
        "  }\n"
        "}"
    ),
    "README.md": (
        "# MCP Simulator\n\n"
        "A Model Context Protocol simulator.\n\n"
        "## Features\n"
        "- Tool execution simulation\n"
        "- Context extraction\n"
        "- GitHub integration\n\n"
        "## Usage\n"
        "See documentation for details."
    ),
}

LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript-react",
    ".js": "javascript",
    ".jsx": "javascript-react",
    ".py": "python",
    ".md": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


@dataclass
class FileContext:
    path: str
    content: str
    language: str = "plaintext"
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)


def language_for_path(path: str) -> str:
    return LANGUAGES.get(PurePosixPath(path).suffix.lower(), "plaintext")


def serialized_size(value: Any) -> int:
    """Byte length of the JSON form of a value."""
    return len(json.dumps(value, default=str).encode("utf-8"))


def build_result(
    provider: ContextProvider,
    key: str,
    value: Any,
    kind: str,
    tags: list[str],
    extracted_at: datetime,
) -> ContextExtractionResult:
    return ContextExtractionResult(
        provider_id=provider.id,
        key=key,
        value=value,
        metadata={
            "extracted_at": extracted_at.isoformat(),
            "size": serialized_size(value),
            "type": kind,
            "tags": tags,
        },
    )


async def extract_files(provider: ContextProvider) -> list[ContextExtractionResult]:
    now = datetime.now()
    results: list[ContextExtractionResult] = []
    for path in SAMPLE_FILES:
        context = FileContext(
            path=path,
            content=FILE_TEMPLATES.get(path, f"// Content of {path}"),
            language=language_for_path(path),
            imports=["express", "react", "./services/mcp-simulator"],
            exports=["App", "mcpSimulator", "formatDate", "parseJSON"],
            functions=["executeTool", "getAvailableTools", "formatDate", "parseJSON"],
            classes=["McpSimulator", "ContextExtractor"],
        )
        results.append(
            build_result(
                provider,
                key=f"file:{path}",
                value=asdict(context),
                kind="file",
                tags=[context.language, "source"],
                extracted_at=now,
            )
        )
    return results


async def extract_git(provider: ContextProvider) -> list[ContextExtractionResult]:
    now = datetime.now()
    repository = provider.config.get("repository", "")
    branch = provider.config.get("branch") or "main"
    value = {
        "repository": repository,
        "branch": branch,
        "commits": [
            {
                "hash": "abc123",
                "message": "feat: Add MCP simulator",
                "author": "dev@example.com",
                "date": now.isoformat(),
            },
            {
                "hash": "def456",
                "message": "fix: Update context extraction",
                "author": "dev@example.com",
                "date": (now - timedelta(days=1)).isoformat(),
            },
        ],
        "files": [],
        "metadata": {
            "lastCommit": "abc123",
            "contributors": ["dev@example.com", "contributor@example.com"],
            "fileCount": 42,
        },
    }
    return [
        build_result(
            provider,
            key=f"git:{repository}:{branch}",
            value=value,
            kind="git",
            tags=["repository", "version-control"],
            extracted_at=now,
        )
    ]


async def extract_api(provider: ContextProvider) -> list[ContextExtractionResult]:
    now = datetime.now()
    endpoint = provider.config.get("endpoint", "")
    value = {
        "endpoint": endpoint,
        "endpoints": [
            {
                "path": "/api/v1/tools",
                "method": "GET",
                "description": "List all available MCP tools",
                "parameters": [],
                "response": {"type": "array", "items": {"$ref": "#/definitions/McpTool"}},
            },
            {
                "path": "/api/v1/tools/:id/execute",
                "method": "POST",
                "description": "Execute a specific MCP tool",
                "parameters": [
                    {"name": "id", "in": "path", "type": "integer", "required": True},
                    {"name": "params", "in": "body", "type": "object", "required": True},
                ],
                "response": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean"},
                        "data": {"type": "any"},
                        "error": {"type": "string"},
                    },
                },
            },
        ],
        "definitions": {
            "McpTool": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "schema": {"type": "object"},
                },
            }
        },
    }
    return [
        build_result(
            provider,
            key=f"api:{endpoint}",
            value=value,
            kind="api",
            tags=["documentation", "rest-api"],
            extracted_at=now,
        )
    ]


async def extract_database(provider: ContextProvider) -> list[ContextExtractionResult]:
    now = datetime.now()
    dialect = provider.config.get("dialect", "postgresql")
    value = {
        "dialect": dialect,
        "tables": [
            {
                "name": "mcp_tools",
                "columns": [
                    {"name": "id", "type": "serial", "primary": True},
                    {"name": "name", "type": "text", "nullable": False},
                    {"name": "description", "type": "text", "nullable": False},
                    {"name": "schema", "type": "json", "nullable": False},
                    {"name": "created_at", "type": "timestamp", "default": "now()"},
                ],
                "indexes": ["idx_mcp_tools_name"],
                "rowCount": 10,
            },
            {
                "name": "mcp_requests",
                "columns": [
                    {"name": "id", "type": "serial", "primary": True},
                    {"name": "tool_id", "type": "integer", "foreign": "mcp_tools.id"},
                    {"name": "input", "type": "json", "nullable": False},
                    {"name": "output", "type": "json"},
                    {"name": "status", "type": "text", "nullable": False},
                    {"name": "created_at", "type": "timestamp", "default": "now()"},
                ],
                "indexes": ["idx_mcp_requests_tool_id", "idx_mcp_requests_status"],
                "rowCount": 156,
            },
        ],
        "relationships": [
            {"from": "mcp_requests.tool_id", "to": "mcp_tools.id", "type": "many-to-one"},
        ],
    }
    return [
        build_result(
            provider,
            key="database:schema",
            value=value,
            kind="database",
            tags=["schema", dialect],
            extracted_at=now,
        )
    ]


DEFAULT_ROUTINES: dict[str, ExtractionRoutine] = {
    "file": extract_files,
    "git": extract_git,
    "api": extract_api,
    "database": extract_database,
}
