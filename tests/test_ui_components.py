"""Tests for UI component utilities (pure logic, no Streamlit rendering)."""

from __future__ import annotations

import json

import pytest

from mcpsim.ui.components import (
    category_icon,
    format_execution_time,
    parse_params_json,
    params_template,
    provider_icon,
    status_badge,
    truncate,
)


class TestStatusBadge:
    def test_completed(self):
        assert "\U0001f7e2" in status_badge("completed")

    def test_failed(self):
        assert "\U0001f534" in status_badge("failed")

    def test_processing(self):
        assert "\U0001f7e1" in status_badge("processing")

    def test_unknown(self):
        badge = status_badge("weird")
        assert "\u26aa" in badge
        assert "weird" in badge


class TestIcons:
    def test_known_category(self):
        assert category_icon("search") == "\U0001f50d"

    def test_unknown_category(self):
        assert category_icon("misc") == "\U0001f527"

    def test_provider_icon_fallback(self):
        assert provider_icon("git") == "\U0001f33f"
        assert provider_icon("ftp") == "\u2753"


class TestFormatExecutionTime:
    def test_milliseconds(self):
        assert format_execution_time(250) == "250ms"

    def test_seconds(self):
        assert format_execution_time(1250) == "1.25s"


class TestParseParamsJson:
    def test_blank_is_empty(self):
        assert parse_params_json("  \n") == {}

    def test_object(self):
        assert parse_params_json('{"query": "x", "limit": 5}') == {"query": "x", "limit": 5}

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_params_json("{query: x}")

    def test_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            parse_params_json("[1, 2]")


class TestParamsTemplate:
    def test_uses_defaults_enums_and_types(self):
        schema = {
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "limit": {"type": "number", "default": 10},
                "analysisType": {"type": "string", "enum": ["dependencies", "structure"]},
                "flag": {"type": "boolean"},
            },
        }
        assert json.loads(params_template(schema)) == {
            "query": "",
            "limit": 10,
            "analysisType": "dependencies",
            "flag": False,
        }

    def test_empty_schema(self):
        assert params_template({}) == "{}"


class TestTruncate:
    def test_short(self):
        assert truncate("abc", 10) == "abc"

    def test_long(self):
        out = truncate("x" * 300)
        assert len(out) == 200
        assert out.endswith("...")
