"""Anthropic Claude provider."""

from __future__ import annotations

import logging
import time

from healthcoach.core.llm.provider import ProviderResponse

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """Messages API provider; the composed narrative is sent as one user turn."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929") -> None:
        import anthropic

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        started = time.monotonic()
        message = await self.client.messages.create(
            model=self.model,
            system=instructions,
            messages=[{"role": "user", "content": input_text}],
            max_tokens=max_output_tokens,
            temperature=temperature,
        )
        latency_ms = (time.monotonic() - started) * 1000

        if message.stop_reason == "max_tokens":
            logger.warning("Coaching text truncated at %d output tokens", max_output_tokens)

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        return ProviderResponse(
            content=text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            model=message.model or self.model,
            latency_ms=latency_ms,
        )
