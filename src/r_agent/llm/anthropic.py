"""
Anthropic Claude LLM provider.
"""

import json
from typing import Any

import anthropic
import structlog

from .base import (
    BaseLLM,
    LLMMessage,
    LLMResponse,
    ToolCall,
    ToolDefinition,
    Usage,
    dump_arguments,
)

logger = structlog.get_logger()


class AnthropicLLM(BaseLLM):
    """Anthropic Claude LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        top_p: float | None = None,
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ):
        super().__init__(
            api_key, model, base_url, max_tokens, temperature, top_p, system_prompt, tools
        )
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _convert_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert LLMMessages to Anthropic format. System turns are skipped."""
        converted = []
        pending_ids: set[str] = set()

        for msg in messages:
            if msg.role == "system":
                continue

            if msg.role == "tool":
                if msg.tool_call_id not in pending_ids:
                    logger.debug("Dropping orphan tool result", tool_call_id=msg.tool_call_id)
                    continue
                converted.append({
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": msg.tool_call_id,
                            "content": msg.content,
                        }
                    ],
                })
            elif msg.role == "assistant" and msg.tool_calls:
                pending_ids.update(tc.id for tc in msg.tool_calls)
                content: list[dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    try:
                        tool_input = json.loads(tc.arguments)
                    except json.JSONDecodeError:
                        tool_input = {}
                    content.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tool_input if isinstance(tool_input, dict) else {},
                    })
                converted.append({"role": "assistant", "content": content})
            else:
                converted.append({
                    "role": msg.role,
                    "content": msg.content,
                })

        return converted

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Convert ToolDefinitions to Anthropic format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    def _extract_system_prompt(
        self, messages: list[LLMMessage], system_prompt: str | None
    ) -> str | None:
        """Merge the client's system prompt with any system turns (e.g. a summary)."""
        parts = [system_prompt] if system_prompt else []
        parts.extend(msg.content for msg in messages if msg.role == "system" and msg.content)
        return "\n\n".join(parts) or None

    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from Claude."""
        system = self._extract_system_prompt(messages, system_prompt)
        converted_messages = self._convert_messages(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": converted_messages,
        }
        if self.top_p is not None:
            kwargs["top_p"] = self.top_p

        if system:
            kwargs["system"] = system

        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error("Anthropic API error", error=str(e))
            raise

        text_parts = []
        thinking_parts = []
        tool_calls = []

        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "thinking":
                thinking_parts.append(block.thinking)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(
                    id=block.id,
                    name=block.name,
                    arguments=dump_arguments(block.input),
                ))

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        return LLMResponse(
            content="".join(text_parts) or None,
            reasoning_content="".join(thinking_parts) or None,
            tool_calls=tool_calls or None,
            usage=Usage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            model=response.model,
            stop_reason=response.stop_reason,
            raw_response=response,
        )
