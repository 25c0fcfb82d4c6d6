from crewflow.tools.base import FunctionTool, Tool, ToolResult
from crewflow.tools.registry import ToolRegistry

__all__ = ["FunctionTool", "Tool", "ToolRegistry", "ToolResult"]
