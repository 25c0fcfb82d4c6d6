"""Tool registry - an agent's tools and the calls made to them."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from crewflow.tools.base import Tool, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        self.call_log: list[dict] = []
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if not tool.name:
            raise ValueError("Tool must have a name")
        if tool.name in self._tools:
            logger.warning(f"Replacing tool with duplicate name: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict]:
        return [t.to_schema() for t in self._tools.values()]

    def run_call(self, call: dict[str, Any]) -> ToolResult:
        """Run one model tool call (``{"name", "args", "id"}``) and log it."""
        name = call.get("name") or ""
        tool = self.get(name)
        if tool is None:
            result = ToolResult(success=False, error=f"Unknown tool: {name}")
        else:
            logger.debug(f"Running tool {name} with {call.get('args')}")
            result = tool.run(**(call.get("args") or {}))

        self.call_log.append({
            "tool": name,
            "call_id": call.get("id"),
            "success": result.success,
            "error": result.error,
            "execution_time_ms": result.execution_time_ms,
        })
        return result

    def __len__(self) -> int:
        return len(self._tools)
