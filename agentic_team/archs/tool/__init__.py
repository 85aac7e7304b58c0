"""Tool layer: schema-validated callables returning ``Ok`` or ``Suspend``."""

from .result import Ok, Suspend, ToolError, ToolResult
from .tool import Tool, ToolYamlSchema

__all__ = ["Ok", "Suspend", "Tool", "ToolError", "ToolResult", "ToolYamlSchema"]
