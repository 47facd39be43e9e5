"""
Tool registry for managing available tools.
"""

import json
from typing import Iterable

import structlog

from ..llm.base import ToolCall, ToolDefinition
from .base import BaseTool

logger = structlog.get_logger()


class ToolRegistry:
    """Registry for managing tools.

    A registry holds no per-conversation state and can be shared by several
    agents.
    """

    def __init__(self, tools: Iterable[BaseTool] = ()):
        self._tools: dict[str, BaseTool] = {}
        self.register(*tools)

    def register(self, *tools: BaseTool) -> None:
        """Register tools. A later tool replaces an earlier one with the same name."""
        for tool in tools:
            if tool.name in self._tools:
                logger.warning("Tool replaced", tool_name=tool.name)
            self._tools[tool.name] = tool
            logger.debug("Tool registered", tool_name=tool.name)

    def unregister(self, name: str) -> None:
        """Unregister a tool."""
        if name in self._tools:
            del self._tools[name]
            logger.info("Tool unregistered", tool_name=name)

    def clear(self) -> None:
        self._tools.clear()

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get_schema(self, names: Iterable[str] | None = None) -> list[dict]:
        """Get ``{name, description, parameters}`` for the named tools.

        Unknown names are skipped. ``None`` selects every tool.
        """
        if names is None:
            names = self.list_tools()
        return [self._tools[name].to_definition() for name in names if name in self._tools]

    def get_definitions(self, names: Iterable[str] | None = None) -> list[ToolDefinition]:
        """Get tool definitions for LLM."""
        return [ToolDefinition(**schema) for schema in self.get_schema(names)]

    async def execute(self, name: str, arguments: str) -> str | None:
        """Execute a tool by name. Returns None if the tool is not registered."""
        tool = self.get(name)
        if tool is None:
            logger.warning("Tool not found", tool_name=name)
            return None

        try:
            logger.info("Executing tool", tool_name=name, arguments=arguments)
            result = await tool.execute(arguments)
            logger.info("Tool executed", tool_name=name, result_chars=len(result))
            return result
        except Exception as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return f"Error: {e}"

    @staticmethod
    def format_tool_calls(tool_calls: Iterable[ToolCall]) -> list[str]:
        """Serialize tool calls for logs and memory."""
        return [json.dumps(tc.to_dict()) for tc in tool_calls]
