"""Tools for the conversational AI assistant."""

from codewizard.tools.registry import ToolsRegistry, build_tool_registry

__all__ = ["ToolsRegistry", "build_tool_registry"]
