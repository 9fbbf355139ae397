"""Tool dispatcher: validate, sanitize, execute and record tool calls.

Every call that gets past the params shape check ends up as exactly one
ledger entry, whether it succeeds or fails. Handlers are looked up by tool
name and run under a fixed timeout.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from mcpsim.config import DEFAULT_TOOL_TIMEOUT
from mcpsim.models import REQUEST_COMPLETED, REQUEST_FAILED, Tool, ToolResult
from mcpsim.storage.repository import Repository
from mcpsim.tools.handlers import BUILTIN_HANDLERS, ToolHandler
from mcpsim.tools.sanitize import sanitize_params, validate_params_shape, validate_tool_id

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Runs registered tools against the request ledger."""

    def __init__(self, repo: Repository, timeout: float = DEFAULT_TOOL_TIMEOUT) -> None:
        self._repo = repo
        self._timeout = timeout
        self._handlers: dict[str, ToolHandler] = dict(BUILTIN_HANDLERS)

    @property
    def timeout(self) -> float:
        return self._timeout

    def register_handler(self, name: str, handler: ToolHandler) -> None:
        """Register (or replace) the handler for a tool name."""
        self._handlers[name] = handler

    def handler_names(self) -> list[str]:
        return sorted(self._handlers)

    async def get_available_tools(self) -> list[Tool]:
        return [tool for tool in self._repo.get_tools() if tool.enabled]

    async def execute(self, tool_id: int, params: Any = None) -> ToolResult:
        """Execute a tool by id.

        Raises ValueError for a malformed tool id or params shape; those are
        rejected before anything is written. Every later failure is returned
        as an unsuccessful ToolResult and recorded in the ledger.
        """
        validate_tool_id(tool_id)
        raw_params = validate_params_shape(params)
        original = params if params is not None else {}

        start = time.time()
        try:
            result = await self._run(tool_id, raw_params)
        except Exception as e:
            execution_time = int((time.time() - start) * 1000)
            error = str(e) or type(e).__name__
            logger.warning(f"Tool {tool_id} failed after {execution_time}ms: {error}")
            self._repo.create_request(
                tool_id=tool_id,
                input=original,
                output=None,
                status=REQUEST_FAILED,
                error=error,
                execution_time=execution_time,
            )
            return ToolResult(success=False, error=error, execution_time=execution_time)

        execution_time = int((time.time() - start) * 1000)
        self._repo.create_request(
            tool_id=tool_id,
            input=original,
            output=result,
            status=REQUEST_COMPLETED,
            execution_time=execution_time,
        )
        logger.info(f"Tool {tool_id} completed in {execution_time}ms")
        return ToolResult(success=True, data=result, execution_time=execution_time)

    async def _run(self, tool_id: int, raw_params: dict) -> Any:
        tool = self._repo.get_tool(tool_id)
        if tool is None:
            raise LookupError(f"Tool with ID {tool_id} not found")
        if not tool.enabled:
            raise ValueError(f"Tool {tool.name} is disabled")

        params = sanitize_params(raw_params)
        _check_required(tool.schema, params)

        handler = self._handlers.get(tool.name)
        if handler is None:
            raise LookupError(f"No handler registered for tool: {tool.name}")

        # wait_for cancels the handler on timeout, so a late result is dropped
        try:
            return await asyncio.wait_for(handler(params), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Tool execution timed out after {self._timeout:g}s") from None


def _check_required(schema: Any, params: dict) -> None:
    """Presence-only check of schema["required"]; value types are not checked."""
    if not isinstance(schema, dict):
        return
    required = schema.get("required")
    if not isinstance(required, list):
        return
    for name in required:
        if name not in params:
            raise ValueError(f"Missing required parameter: {name}")
