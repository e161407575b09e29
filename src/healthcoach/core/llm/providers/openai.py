"""OpenAI provider (Responses API)."""

from __future__ import annotations

import logging
import time

from healthcoach.core.llm.provider import ProviderResponse

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Responses API provider: template instructions plus the narrative as input."""

    def __init__(self, api_key: str, model: str = "gpt-4.1-mini") -> None:
        import openai

        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        started = time.monotonic()
        result = await self.client.responses.create(
            model=self.model,
            instructions=instructions,
            input=input_text,
            max_output_tokens=max_output_tokens,
            temperature=temperature,
        )
        latency_ms = (time.monotonic() - started) * 1000

        if result.status == "incomplete":
            logger.warning("Coaching text incomplete: %s", result.incomplete_details)

        usage = result.usage
        return ProviderResponse(
            content=result.output_text or "",
            input_tokens=usage.input_tokens if usage else 0,
            output_tokens=usage.output_tokens if usage else 0,
            model=result.model or self.model,
            latency_ms=latency_ms,
        )
