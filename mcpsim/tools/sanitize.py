"""Parameter shape checks and sanitization for tool calls.

The dispatcher hands handlers the sanitized copy and keeps the original
params for the ledger.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

MAX_ARRAY_LENGTH = 100

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
SCRIPT_PATTERN = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)


def validate_tool_id(tool_id: Any) -> int:
    """Reject anything that is not a positive integer."""
    if isinstance(tool_id, bool) or not isinstance(tool_id, int) or tool_id <= 0:
        raise ValueError(f"Tool ID must be a positive integer, got {tool_id!r}")
    return tool_id


def validate_params_shape(params: Any) -> dict:
    """Params must be a key-value object. None means no params."""
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise ValueError(f"Tool params must be an object, got {type(params).__name__}")
    return dict(params)


def sanitize_value(value: Any) -> tuple[bool, Any]:
    """Return (keep, cleaned) for a single parameter value."""
    if isinstance(value, bool):
        return True, value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return False, None
        return True, value
    if isinstance(value, str):
        return True, SCRIPT_PATTERN.sub("", value)
    if isinstance(value, (list, tuple)):
        return True, list(value[:MAX_ARRAY_LENGTH])
    return False, None


def sanitize_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unsafe keys and values; never mutates the input."""
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if not isinstance(key, str) or not KEY_PATTERN.match(key):
            continue
        keep, sanitized = sanitize_value(value)
        if keep:
            cleaned[key] = sanitized
    return cleaned
