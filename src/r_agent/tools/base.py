"""
Base classes for tools.

A tool receives the raw JSON argument payload chosen by the model and
returns text. Failures are reported in that text rather than raised, so
the model can read them and react.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger()


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    param_type: str  # string, number, integer, boolean, array, object
    description: str
    required: bool = True
    default: Any = None
    enum: list[str] | None = None


class BaseTool(ABC):
    """Base class for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Get the tool parameters schema (JSON Schema)."""
        pass

    @abstractmethod
    async def execute(self, arguments: str) -> str:
        """Execute the tool with the model's JSON argument payload."""
        pass

    def to_definition(self) -> dict[str, Any]:
        """Convert to a tool definition for LLM."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


class Tool(BaseTool):
    """
    Simple tool wrapper that can be created from a function.

    The handler is called with the decoded arguments as keyword arguments.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: list[ToolParameter],
        handler: Callable[..., Awaitable[str]],
    ):
        self._name = name
        self._description = description
        self.parameter_list = parameters
        self.handler = handler

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        """Convert parameters to JSON Schema format."""
        properties = {}
        required = []

        for param in self.parameter_list:
            prop: dict[str, Any] = {
                "type": param.param_type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    async def execute(self, arguments: str) -> str:
        """Decode the payload and run the handler."""
        try:
            kwargs = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            return f"Error: invalid JSON arguments for {self.name}: {e}"
        if not isinstance(kwargs, dict):
            return f"Error: arguments for {self.name} must be a JSON object"

        try:
            return await self.handler(**kwargs)
        except Exception as e:
            logger.error("Tool handler error", tool_name=self.name, error=str(e))
            return f"Error: {e}"
