"""MCP server for mcpsim.

Exposes the simulated tool registry and the context cache over the Model
Context Protocol. Every enabled tool in the store is listed with its schema
as inputSchema and runs through the ToolDispatcher, so each call lands in
the request ledger. Three extra tools give access to the context extractor.

Usage:
    mcpsim serve [--db-path /path/to/mcpsim.db]
    python -m mcpsim.mcp_server [--db /path/to/mcpsim.db]

Configure in an MCP client:
    {
      "mcpServers": {
        "mcpsim": {
          "command": "mcpsim",
          "args": ["serve"],
          "env": {"MCPSIM_DB_PATH": "/path/to/mcpsim.db"}
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server

from mcpsim.config import Config
from mcpsim.services import Services, build_services

logger = logging.getLogger(__name__)

CONTEXT_TOOLS = [
    types.Tool(
        name="extract_context",
        description=(
            "Extract context from a configured context provider and cache it. "
            "Omit provider_id to extract from every enabled provider."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "provider_id": {
                    "type": "integer",
                    "description": "Context provider id",
                },
            },
        },
    ),
    types.Tool(
        name="search_context",
        description=(
            "Case-insensitive search over all cached context values. "
            "Examples: 'postgresql', 'express', 'README'"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to look for"},
            },
            "required": ["query"],
        },
    ),
    types.Tool(
        name="get_cached_context",
        description="Get a cached context entry by key, if it has not expired (e.g. 'database:schema').",
        inputSchema={
            "type": "object",
            "properties": {
                "key": {"type": "string", "description": "Cache key, <type>:<discriminator>"},
            },
            "required": ["key"],
        },
    ),
]


def _resolve_db_path() -> Path | None:
    """--db /path/to/db on the command line overrides MCPSIM_DB_PATH."""
    for i, arg in enumerate(sys.argv):
        if arg == "--db" and i + 1 < len(sys.argv):
            return Path(sys.argv[i + 1])
    return None


def _text(payload: object) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


async def list_tool_definitions(services: Services) -> list[types.Tool]:
    tools = [
        types.Tool(name=tool.name, description=tool.description, inputSchema=tool.schema)
        for tool in await services.dispatcher.get_available_tools()
    ]
    return tools + CONTEXT_TOOLS


async def dispatch_tool(services: Services, name: str, arguments: dict) -> list[types.TextContent]:
    """Route a tool call to the extractor or the dispatcher."""
    if name == "extract_context":
        provider_id = arguments.get("provider_id")
        if provider_id is None:
            results = await services.extractor.extract_all_contexts()
        else:
            results = await services.extractor.extract_context(int(provider_id))
        return _text([r.to_dict() for r in results])
    elif name == "search_context":
        results = await services.extractor.search_context(arguments.get("query", ""))
        return _text({
            "query": arguments.get("query"),
            "count": len(results),
            "results": [r.to_dict() for r in results],
        })
    elif name == "get_cached_context":
        item = await services.extractor.get_cached_context(arguments.get("key", ""))
        if item is None:
            return [types.TextContent(type="text", text=f"No fresh cache entry for '{arguments.get('key')}'.")]
        return _text({
            "key": item.key,
            "provider_id": item.provider_id,
            "value": item.value,
            "metadata": item.metadata,
            "expires_at": item.expires_at,
        })

    tool = services.repo.get_tool_by_name(name)
    if tool is None:
        return [types.TextContent(type="text", text=f"Unknown tool: {name}")]
    result = await services.dispatcher.execute(tool.id, arguments)
    return _text(result.to_dict())


def create_server(services: Services) -> Server:
    server = Server("mcpsim")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return await list_tool_definitions(services)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        try:
            return await dispatch_tool(services, name, arguments or {})
        except Exception as e:
            logger.error(f"MCP tool {name} failed: {e}")
            return [types.TextContent(type="text", text=f"Error: {e}")]

    return server


async def main(db_path: Path | None = None) -> None:
    config = Config.load()
    db_path = db_path or _resolve_db_path()
    if db_path is not None:
        config.db_path = db_path

    # stdout carries the protocol
    logging.basicConfig(stream=sys.stderr, level=getattr(logging, config.log_level, logging.WARNING))

    services = build_services(config)
    server = create_server(services)
    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        services.close()


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
