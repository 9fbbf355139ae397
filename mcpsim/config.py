"""Configuration loading for mcpsim.

Config sources (in priority order):
1. Explicit arguments passed to functions
2. Environment variables (MCPSIM_DB_PATH, etc.)
3. .env file in current directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = Path("mcpsim.db")
DEFAULT_TOOL_TIMEOUT = 30.0  # seconds
DEFAULT_CACHE_TTL = 3600  # seconds
DEFAULT_COMMAND_PREFIX = "/mcp"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast, issues: list[str]):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        issues.append(f"Invalid value '{raw}' for {name}")
        return default


@dataclass
class Config:
    db_path: Path = DEFAULT_DB_PATH
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    cache_ttl: int = DEFAULT_CACHE_TTL
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    seed_sample_data: bool = True
    log_level: str = "WARNING"
    # Env values that failed to parse, reported by validate()
    load_issues: list[str] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def load(cls) -> Config:
        issues: list[str] = []
        return cls(
            db_path=Path(os.getenv("MCPSIM_DB_PATH", str(DEFAULT_DB_PATH))),
            tool_timeout=_env_number("MCPSIM_TOOL_TIMEOUT", DEFAULT_TOOL_TIMEOUT, float, issues),
            cache_ttl=_env_number("MCPSIM_CACHE_TTL", DEFAULT_CACHE_TTL, int, issues),
            command_prefix=os.getenv("MCPSIM_COMMAND_PREFIX", DEFAULT_COMMAND_PREFIX),
            seed_sample_data=_env_bool("MCPSIM_SEED", True),
            log_level=os.getenv("MCPSIM_LOG_LEVEL", "WARNING").upper(),
            load_issues=issues,
        )

    def validate(self) -> list[str]:
        """Return a list of config issues."""
        issues = list(self.load_issues)
        if not self.tool_timeout > 0:
            issues.append("Tool timeout must be positive (MCPSIM_TOOL_TIMEOUT)")
        if self.cache_ttl <= 0:
            issues.append("Cache TTL must be positive (MCPSIM_CACHE_TTL)")
        if not self.command_prefix.strip():
            issues.append("Bot command prefix is empty (MCPSIM_COMMAND_PREFIX)")
        if self.log_level not in LOG_LEVELS:
            issues.append(f"Unknown log level '{self.log_level}' (MCPSIM_LOG_LEVEL)")
        return issues
