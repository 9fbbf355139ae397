"""Tests for the MCP server tool routing."""

from __future__ import annotations

import asyncio
import json
from importlib.metadata import version

from mcp.server import Server

from mcpsim.mcp_server import create_server, dispatch_tool, list_tool_definitions
from mcpsim.services import Services


def _call(services: Services, name: str, arguments: dict):
    return asyncio.run(dispatch_tool(services, name, arguments))


class TestListTools:
    def test_store_tools_plus_context_tools(self, services: Services):
        tools = asyncio.run(list_tool_definitions(services))
        names = [t.name for t in tools]
        assert names == [
            "web_search",
            "file_reader",
            "code_analyzer",
            "extract_context",
            "search_context",
            "get_cached_context",
        ]
        assert tools[0].inputSchema["required"] == ["query"]

    def test_disabled_tools_hidden(self, services: Services):
        services.repo.update_tool(1, enabled=False)
        names = [t.name for t in asyncio.run(list_tool_definitions(services))]
        assert "web_search" not in names


class TestCallTool:
    def test_store_tool_goes_through_dispatcher(self, services: Services):
        [content] = _call(services, "code_analyzer", {"filePath": "a.ts", "analysisType": "structure"})
        payload = json.loads(content.text)
        assert payload["success"] is True
        assert payload["data"]["result"]["classes"] == 3
        assert len(services.repo.get_requests()) == 1

    def test_failed_tool_result(self, services: Services):
        [content] = _call(services, "web_search", {})
        payload = json.loads(content.text)
        assert payload["success"] is False
        assert payload["error"] == "Missing required parameter: query"

    def test_unknown_tool(self, services: Services):
        [content] = _call(services, "nope", {})
        assert content.text == "Unknown tool: nope"

    def test_extract_and_search(self, services: Services):
        [content] = _call(services, "extract_context", {"provider_id": 1})
        extracted = json.loads(content.text)
        assert extracted[0]["key"] == "git:https://github.com/example/repo:main"

        [content] = _call(services, "search_context", {"query": "contributor@example.com"})
        found = json.loads(content.text)
        assert found["count"] == 1

    def test_extract_all(self, services: Services):
        [content] = _call(services, "extract_context", {})
        assert len(json.loads(content.text)) == 6

    def test_get_cached_context(self, services: Services):
        _call(services, "extract_context", {"provider_id": 3})
        [content] = _call(services, "get_cached_context", {"key": "api:https://api.example.com/docs"})
        payload = json.loads(content.text)
        assert payload["provider_id"] == 3
        assert "endpoints" in payload["value"]

    def test_get_cached_context_missing(self, services: Services):
        [content] = _call(services, "get_cached_context", {"key": "database:schema"})
        assert content.text.startswith("No fresh cache entry")


def test_create_server(services: Services):
    server = create_server(services)
    assert isinstance(server, Server)
    assert server.name == "mcpsim"


def test_installed_sdk_has_decorator_api():
    # create_server registers handlers with the 1.x Server decorators
    assert version("mcp").split(".")[0] == "1"
    assert hasattr(Server("check"), "list_tools")
