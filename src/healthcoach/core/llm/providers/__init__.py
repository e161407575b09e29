"""Text-generation provider implementations."""

from healthcoach.core.llm.providers.anthropic import AnthropicProvider
from healthcoach.core.llm.providers.mock import MockProvider
from healthcoach.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
