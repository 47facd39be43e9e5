"""
Configuration management for r-agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .prompts import REACT_END_TOKEN

Provider = Literal["anthropic", "openai", "openrouter"]


class LLMConfig(BaseSettings):
    """Configuration for a single LLM provider."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Provider = "openai"
    model: str = "gpt-4o-mini"
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.7
    top_p: float | None = None


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "R-Agent"
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = Field(default="", description="Directory for the log file; empty disables file logging")
    log_file: str = "r_agent.log"

    # LLM Providers (API Keys)
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")
    openai_base_url: str | None = Field(default=None, description="Override for OpenAI-compatible endpoints")

    # Default model settings
    default_provider: Provider = "openai"
    default_model: str = "gpt-4o-mini"
    summary_provider: Provider | None = Field(default=None, description="Provider for the summary model, defaults to default_provider")
    summary_model: str = Field(default="gpt-4o-mini", description="Cheaper model used to summarize history")
    max_tokens: int = Field(default=4096, description="Max output tokens per model call")
    temperature: float = 0.7
    top_p: float | None = None

    # Agent
    max_iterations: int = Field(default=10, ge=1, description="Max model calls per run")
    end_token: str = Field(default=REACT_END_TOKEN, description="Marker that ends the final answer")

    # Memory
    memory_type: Literal["summary", "sliding_window"] = "summary"
    memory_max_tokens: int = Field(default=8192, gt=0, description="Token budget of the live window")
    max_messages: int = Field(default=50, gt=0, description="Message ceiling for sliding-window memory")
    reserve_ratio: float = Field(default=0.3, description="Fraction of memory_max_tokens kept free of summary")
    workspace_root: str = Field(default="./workspace", description="Where per-task summaries are stored")

    @field_validator("reserve_ratio")
    @classmethod
    def check_reserve_ratio(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("reserve_ratio must be in [0, 1)")
        return v

    def get_llm_config(
        self, provider: str | None = None, model: str | None = None
    ) -> LLMConfig:
        """Get LLM configuration for a provider."""
        provider = provider or self.default_provider

        api_key_map = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "openrouter": self.openrouter_api_key,
        }

        base_url_map = {
            "anthropic": None,
            "openai": self.openai_base_url,
            "openrouter": "https://openrouter.ai/api/v1",
        }

        return LLMConfig(
            provider=provider,  # type: ignore
            model=model or self.default_model,
            api_key=api_key_map.get(provider, ""),
            base_url=base_url_map.get(provider),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )

    def get_summary_llm_config(self) -> LLMConfig:
        """Get LLM configuration for the summary model."""
        return self.get_llm_config(self.summary_provider, self.summary_model)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
