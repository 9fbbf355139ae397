"""Tests for mcpsim.config."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from mcpsim.config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_DB_PATH,
    DEFAULT_TOOL_TIMEOUT,
    Config,
)


class TestConfigDefaults:
    def test_default_values(self):
        config = Config()
        assert config.db_path == DEFAULT_DB_PATH
        assert config.tool_timeout == DEFAULT_TOOL_TIMEOUT == 30.0
        assert config.cache_ttl == DEFAULT_CACHE_TTL == 3600
        assert config.command_prefix == DEFAULT_COMMAND_PREFIX == "/mcp"
        assert config.seed_sample_data is True
        assert config.log_level == "WARNING"


class TestConfigLoad:
    def test_load_from_env(self):
        env = {
            "MCPSIM_DB_PATH": "/tmp/sim.db",
            "MCPSIM_TOOL_TIMEOUT": "2.5",
            "MCPSIM_CACHE_TTL": "60",
            "MCPSIM_COMMAND_PREFIX": "/bot",
            "MCPSIM_SEED": "no",
            "MCPSIM_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=False):
            config = Config.load()
        assert config.db_path == Path("/tmp/sim.db")
        assert config.tool_timeout == 2.5
        assert config.cache_ttl == 60
        assert config.command_prefix == "/bot"
        assert config.seed_sample_data is False
        assert config.log_level == "DEBUG"

    def test_load_defaults_when_env_empty(self):
        keys = [
            "MCPSIM_DB_PATH",
            "MCPSIM_TOOL_TIMEOUT",
            "MCPSIM_CACHE_TTL",
            "MCPSIM_COMMAND_PREFIX",
            "MCPSIM_SEED",
            "MCPSIM_LOG_LEVEL",
        ]
        with patch.dict(os.environ, {}, clear=False):
            for key in keys:
                os.environ.pop(key, None)
            config = Config.load()
        assert config == Config()

    def test_seed_accepts_truthy_values(self):
        for raw in ("1", "true", "YES", "on"):
            with patch.dict(os.environ, {"MCPSIM_SEED": raw}, clear=False):
                assert Config.load().seed_sample_data is True


class TestConfigValidate:
    def test_valid_config(self):
        assert Config().validate() == []

    def test_non_positive_timeout(self):
        issues = Config(tool_timeout=0).validate()
        assert any("MCPSIM_TOOL_TIMEOUT" in i for i in issues)

    def test_non_positive_ttl(self):
        issues = Config(cache_ttl=-1).validate()
        assert any("MCPSIM_CACHE_TTL" in i for i in issues)

    def test_empty_prefix(self):
        issues = Config(command_prefix="  ").validate()
        assert any("MCPSIM_COMMAND_PREFIX" in i for i in issues)

    def test_unknown_log_level(self):
        issues = Config(log_level="LOUD").validate()
        assert any("LOUD" in i for i in issues)

    def test_multiple_issues(self):
        assert len(Config(tool_timeout=-1, cache_ttl=0).validate()) == 2


class TestConfigBadNumbers:
    @pytest.mark.parametrize("name", ["MCPSIM_TOOL_TIMEOUT", "MCPSIM_CACHE_TTL"])
    def test_non_numeric_value_is_a_validation_issue(self, name):
        with patch.dict(os.environ, {name: "soon"}, clear=False):
            config = Config.load()
        assert config.tool_timeout == DEFAULT_TOOL_TIMEOUT
        assert config.cache_ttl == DEFAULT_CACHE_TTL
        assert config.validate() == [f"Invalid value 'soon' for {name}"]

    def test_fractional_ttl_rejected(self):
        with patch.dict(os.environ, {"MCPSIM_CACHE_TTL": "1.5"}, clear=False):
            issues = Config.load().validate()
        assert issues == ["Invalid value '1.5' for MCPSIM_CACHE_TTL"]

    def test_nan_timeout(self):
        issues = Config(tool_timeout=float("nan")).validate()
        assert any("MCPSIM_TOOL_TIMEOUT" in i for i in issues)
