"""Text-generation provider protocol: abstract interface for model calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class ProviderResponse:
    """Response from a text-generation provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for a single text-generation call."""

    async def generate(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
) -> LLMProvider:
    """Factory function to create a provider by name.

    Args:
        provider_name: "openai", "anthropic", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.
    """
    if provider_name == "openai":
        from healthcoach.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4.1-mini")
    elif provider_name == "anthropic":
        from healthcoach.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-5-20250929")
    elif provider_name == "mock":
        from healthcoach.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
