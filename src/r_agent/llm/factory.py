"""
LLM factory for creating provider instances.

Supports: Anthropic Claude, OpenAI GPT, OpenRouter.
"""

from ..config import LLMConfig, Settings
from .anthropic import AnthropicLLM
from .base import BaseLLM, ToolDefinition
from .openai import OpenAILLM


def create_llm(
    config: LLMConfig | None = None,
    settings: Settings | None = None,
    system_prompt: str | None = None,
    tools: list[ToolDefinition] | None = None,
) -> BaseLLM:
    """Create an LLM instance based on configuration.

    Provider routing:
    - anthropic -> AnthropicLLM (native Anthropic SDK)
    - openai -> OpenAILLM (native OpenAI SDK)
    - openrouter -> OpenAILLM (OpenAI-compatible endpoint)
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.get_llm_config()

    provider = config.provider

    if provider == "anthropic":
        return AnthropicLLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            system_prompt=system_prompt,
            tools=tools,
        )
    elif provider == "openai":
        return OpenAILLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            system_prompt=system_prompt,
            tools=tools,
        )
    elif provider == "openrouter":
        return OpenAILLM(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url or "https://openrouter.ai/api/v1",
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            system_prompt=system_prompt,
            tools=tools,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
