"""Tests for the mcpsim CLI."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from mcpsim.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env():
    with patch.dict(os.environ, {"MCPSIM_SEED": "true", "MCPSIM_LOG_LEVEL": "WARNING"}, clear=False):
        os.environ.pop("MCPSIM_DB_PATH", None)
        yield


@pytest.fixture
def cli_db(tmp_path: Path) -> str:
    return str(tmp_path / "cli.db")


def invoke(*args: str):
    return runner.invoke(app, list(args))


class TestTools:
    def test_lists_seeded_tools(self, cli_db: str):
        result = invoke("tools", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "web_search" in result.stdout
        assert "code_analyzer" in result.stdout

    def test_empty_store(self, cli_db: str):
        with patch.dict(os.environ, {"MCPSIM_SEED": "false"}):
            result = invoke("tools", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "No tools registered" in result.stdout


class TestRun:
    def test_success(self, cli_db: str):
        result = invoke("run", "1", "--params", '{"query": "python", "limit": 3}', "--db-path", cli_db)
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert len(payload["data"]["results"]) == 3

    def test_failure_exits_nonzero(self, cli_db: str):
        result = invoke("run", "99", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Tool with ID 99 not found" in result.stdout

    def test_invalid_json(self, cli_db: str):
        result = invoke("run", "1", "--params", "{nope", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Invalid --params JSON" in result.stdout

    def test_non_object_params(self, cli_db: str):
        result = invoke("run", "1", "--params", "[1, 2]", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "must be an object" in result.stdout

    def test_ledger_records_run(self, cli_db: str):
        invoke("run", "2", "--params", '{"path": "README.md"}', "--db-path", cli_db)
        invoke("run", "2", "--db-path", cli_db)
        result = invoke("requests", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "#2" in result.stdout
        assert "Missing required parameter: path" in result.stdout


class TestAddTool:
    def test_register_and_run(self, cli_db: str):
        with patch.dict(os.environ, {"MCPSIM_SEED": "false"}):
            result = invoke(
                "add-tool", "file_reader",
                "--schema", '{"type": "object", "properties": {"path": {"type": "string"}}, "required": ["path"]}',
                "--category", "file",
                "--db-path", cli_db,
            )
            assert result.exit_code == 0
            assert "Registered tool 1: file_reader" in result.stdout

            result = invoke("run", "1", "--params", '{"path": "a.md"}', "--db-path", cli_db)
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["path"] == "a.md"

    def test_disabled_tool(self, cli_db: str):
        result = invoke("add-tool", "web_search_v2", "--schema", "{}", "--disabled", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "(disabled)" in result.stdout
        assert "No handler named" in result.stdout

        result = invoke("run", "4", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Tool web_search_v2 is disabled" in result.stdout

    def test_duplicate_name(self, cli_db: str):
        result = invoke("add-tool", "web_search", "--schema", "{}", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_schema_must_be_object(self, cli_db: str):
        result = invoke("add-tool", "x", "--schema", "[1]", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "--schema must be a JSON object" in result.stdout

    def test_required_must_be_names(self, cli_db: str):
        result = invoke("add-tool", "x", "--schema", '{"required": "path"}', "--db-path", cli_db)
        assert result.exit_code == 1
        assert "list of parameter names" in result.stdout


class TestAddProvider:
    def test_database_provider_extract_and_search(self, cli_db: str):
        result = invoke(
            "add-provider", "Main DB", "database", "--config", '{"dialect": "postgresql"}', "--db-path", cli_db
        )
        assert result.exit_code == 0
        assert "Created provider 4: Main DB (database)" in result.stdout

        result = invoke("extract", "4", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "database:schema" in result.stdout

        result = invoke("search", "postgresql", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "database:schema" in result.stdout

    def test_unknown_type(self, cli_db: str):
        result = invoke("add-provider", "Queue", "kafka", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Unknown provider type 'kafka'" in result.stdout

    def test_invalid_config(self, cli_db: str):
        result = invoke("add-provider", "Docs", "api", "--config", "{oops", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Invalid --config JSON" in result.stdout

    def test_disabled_provider_listed(self, cli_db: str):
        invoke("add-provider", "Old files", "file", "--disabled", "--db-path", cli_db)
        result = invoke("providers", "--db-path", cli_db)
        assert "Old files" in result.stdout
        assert "(disabled)" in result.stdout


class TestContextCommands:
    def test_providers(self, cli_db: str):
        result = invoke("providers", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "GitHub Repository" in result.stdout
        assert "Project Files" in result.stdout

    def test_extract_requires_target(self, cli_db: str):
        result = invoke("extract", "--db-path", cli_db)
        assert result.exit_code == 1

    def test_extract_missing_provider(self, cli_db: str):
        result = invoke("extract", "42", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Provider with ID 42 not found" in result.stdout

    def test_extract_search_cached(self, cli_db: str):
        result = invoke("extract", "--all", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "Extracted 6 context item(s)" in result.stdout

        result = invoke("search", "McpSimulator", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "file:src/index.ts" in result.stdout

        result = invoke("cached", "api:https://api.example.com/docs", "--db-path", cli_db)
        assert result.exit_code == 0
        assert json.loads(result.stdout)["key"] == "api:https://api.example.com/docs"

    def test_search_no_matches(self, cli_db: str):
        result = invoke("search", "nothing-here", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "No cached context matches" in result.stdout

    def test_cached_missing(self, cli_db: str):
        result = invoke("cached", "database:schema", "--db-path", cli_db)
        assert result.exit_code == 1


class TestWebhook:
    def test_pull_request(self, cli_db: str, tmp_path: Path, pr_payload: dict):
        payload_file = tmp_path / "pr.json"
        payload_file.write_text(json.dumps(pr_payload))

        result = invoke("webhook", "pull_request", str(payload_file), "--db-path", cli_db)
        assert result.exit_code == 0
        assert "MCP Analysis Results" in result.stdout

        result = invoke("integrations", "--db-path", cli_db)
        assert "PR #42" in result.stdout
        assert "completed" in result.stdout

    def test_missing_payload_file(self, cli_db: str, tmp_path: Path):
        result = invoke("webhook", "push", str(tmp_path / "nope.json"), "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Payload file not found" in result.stdout

    def test_invalid_payload(self, cli_db: str, tmp_path: Path):
        payload_file = tmp_path / "bad.json"
        payload_file.write_text("{")
        result = invoke("webhook", "push", str(payload_file), "--db-path", cli_db)
        assert result.exit_code == 1


class TestStats:
    def test_stats(self, cli_db: str):
        invoke("run", "1", "--params", '{"query": "x"}', "--db-path", cli_db)
        result = invoke("stats", "--db-path", cli_db)
        assert result.exit_code == 0
        assert "3 enabled" in result.stdout
        assert "Requests:        1 (0 failed)" in result.stdout

    def test_config_error(self, cli_db: str):
        with patch.dict(os.environ, {"MCPSIM_TOOL_TIMEOUT": "0"}):
            result = invoke("stats", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Config error" in result.stdout

    def test_non_numeric_timeout(self, cli_db: str):
        with patch.dict(os.environ, {"MCPSIM_TOOL_TIMEOUT": "soon"}):
            result = invoke("stats", "--db-path", cli_db)
        assert result.exit_code == 1
        assert "Invalid value 'soon' for MCPSIM_TOOL_TIMEOUT" in result.stdout
        assert "Traceback" not in result.stdout
