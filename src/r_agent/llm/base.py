"""
Base classes for LLM providers.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

logger = structlog.get_logger()


@dataclass
class ToolDefinition:
    """Definition of a tool that the LLM can use."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass
class ToolCall:
    """A tool call made by the LLM.

    ``arguments`` is the raw JSON payload produced by the model. It is
    passed to the tool untouched.
    """

    id: str
    name: str
    arguments: str = "{}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class LLMMessage:
    """A message in the conversation."""

    role: Literal["user", "assistant", "system", "tool"]
    content: str
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> "LLMMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "LLMMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: list[ToolCall] | None = None
    ) -> "LLMMessage":
        return cls(role="assistant", content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str | None = None) -> "LLMMessage":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)


@dataclass
class Usage:
    """Token usage reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LLMResponse:
    """Response from an LLM.

    Every field is optional: a failed call is represented by an empty
    response rather than an exception.
    """

    content: str | None = None
    reasoning_content: str | None = None
    tool_calls: list[ToolCall] | None = None
    usage: Usage | None = None
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = field(default=None, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.reasoning_content and not self.tool_calls


class BaseLLM(ABC):
    """Base class for LLM providers.

    A client is configured once with its system prompt and the tools it may
    offer to the model; ``call`` and ``call_with_history`` then send
    conversation turns without repeating that setup.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        top_p: float | None = None,
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.system_prompt = system_prompt
        self.tools = tools or []

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM. May raise provider errors."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass

    async def call(self, message: LLMMessage) -> LLMResponse:
        """Send a single turn."""
        return await self.call_with_history([message])

    async def call_with_history(self, messages: list[LLMMessage]) -> LLMResponse:
        """Send an ordered conversation. Never raises."""
        try:
            response = await self.generate(
                messages=messages,
                tools=self.tools or None,
                system_prompt=self.system_prompt,
            )
        except Exception as e:
            logger.error(
                "LLM call failed",
                provider=self.provider_name,
                model=self.model,
                error=str(e),
            )
            return LLMResponse()

        if response.usage:
            logger.debug(
                "LLM usage",
                model=response.model or self.model,
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        return response


def dump_arguments(arguments: Any) -> str:
    """Normalize a provider's tool arguments into a JSON string."""
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments or "{}"
    return json.dumps(arguments)
