"""
LLM module for multi-provider AI model support.

Providers:
- Anthropic Claude (native SDK)
- OpenAI GPT (native SDK)
- OpenRouter (via OpenAI-compatible endpoint)
"""

from .base import BaseLLM, LLMMessage, LLMResponse, ToolCall, ToolDefinition, Usage
from .anthropic import AnthropicLLM
from .openai import OpenAILLM
from .factory import create_llm

__all__ = [
    "BaseLLM",
    "LLMMessage",
    "LLMResponse",
    "ToolCall",
    "ToolDefinition",
    "Usage",
    "AnthropicLLM",
    "OpenAILLM",
    "create_llm",
]
