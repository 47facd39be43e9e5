"""
OpenAI GPT LLM provider (also works with OpenRouter and compatible APIs).
"""

from typing import Any

import openai
import structlog

from .base import BaseLLM, LLMMessage, LLMResponse, ToolCall, ToolDefinition, Usage

logger = structlog.get_logger()


class OpenAILLM(BaseLLM):
    """OpenAI GPT LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
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
        self.client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    def _convert_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert LLMMessages to OpenAI format."""
        converted = []
        pending_ids: set[str] = set()

        for msg in messages:
            if msg.role == "system" and not msg.content:
                # An empty running summary carries nothing worth sending
                continue

            if msg.role == "tool":
                if msg.tool_call_id not in pending_ids:
                    # Its assistant turn was evicted or summarized away
                    logger.debug("Dropping orphan tool result", tool_call_id=msg.tool_call_id)
                    continue
                converted.append({
                    "role": "tool",
                    "tool_call_id": msg.tool_call_id,
                    "content": msg.content,
                })
            elif msg.role == "assistant" and msg.tool_calls:
                pending_ids.update(tc.id for tc in msg.tool_calls)
                converted.append({
                    "role": "assistant",
                    "content": msg.content or None,
                    "tool_calls": [tc.to_dict() for tc in msg.tool_calls],
                })
            else:
                converted.append({
                    "role": msg.role,
                    "content": msg.content,
                })

        return converted

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Convert ToolDefinitions to OpenAI format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from GPT."""
        converted_messages = self._convert_messages(messages)

        if system_prompt:
            converted_messages.insert(0, {"role": "system", "content": system_prompt})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": converted_messages,
        }
        if self.top_p is not None:
            kwargs["top_p"] = self.top_p

        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            logger.error("OpenAI API error", error=str(e))
            raise

        choice = response.choices[0]
        message = choice.message

        tool_calls = None
        if message.tool_calls:
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=tc.function.arguments or "{}",
                )
                for tc in message.tool_calls
            ]

        usage = None
        if response.usage:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(
            content=message.content,
            # DeepSeek, Qwen and several OpenRouter models return this extra field
            reasoning_content=getattr(message, "reasoning_content", None),
            tool_calls=tool_calls,
            usage=usage,
            model=response.model,
            stop_reason=choice.finish_reason,
            raw_response=response,
        )
