"""Tools an agent's model can call during a task."""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from langchain_core.messages import ToolMessage


@dataclass
class ToolResult:
    success: bool
    output: Any = None
    error: Optional[str] = None
    execution_time_ms: float = 0.0

    def to_string(self) -> str:
        if not self.success:
            return f"Error: {self.error}"
        if isinstance(self.output, (dict, list)):
            return json.dumps(self.output, indent=2, default=str)
        return str(self.output)

    def to_message(self, tool_call_id: str) -> ToolMessage:
        """Reply to one model tool call."""
        return ToolMessage(
            content=self.to_string(),
            tool_call_id=tool_call_id,
            status="success" if self.success else "error",
        )


class Tool(ABC):
    name: str = ""
    description: str = ""
    parameters_schema: dict = {"type": "object", "properties": {}}

    @abstractmethod
    def execute(self, **kwargs: Any) -> ToolResult:
        ...

    def missing_parameters(self, kwargs: dict) -> list[str]:
        return [p for p in self.parameters_schema.get("required", []) if p not in kwargs]

    def run(self, **kwargs: Any) -> ToolResult:
        """Check required arguments, execute and time the call.

        Exceptions raised by the tool come back as failed results so the
        model can see them and try again.
        """
        missing = self.missing_parameters(kwargs)
        if missing:
            return ToolResult(success=False, error=f"Missing required parameter: {', '.join(missing)}")

        start = time.perf_counter()
        try:
            result = self.execute(**kwargs)
        except Exception as e:
            result = ToolResult(success=False, error=str(e))
        result.execution_time_ms = (time.perf_counter() - start) * 1000
        return result

    def to_schema(self) -> dict:
        """Function-calling schema accepted by ``bind_tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema,
            },
        }


class FunctionTool(Tool):
    """Wrap a plain callable as a tool."""

    def __init__(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters_schema: Optional[dict] = None,
    ) -> None:
        self._func = func
        self.name = name or func.__name__
        self.description = description or (func.__doc__ or "").strip()
        self.parameters_schema = parameters_schema or {"type": "object", "properties": {}}

    def execute(self, **kwargs: Any) -> ToolResult:
        return ToolResult(success=True, output=self._func(**kwargs))
