"""Mock provider for testing and key-less local runs."""

from __future__ import annotations

from healthcoach.core.llm.provider import ProviderResponse


class MockProvider:
    """Returns a canned response and remembers what it was asked.

    ``failures`` makes the first N calls raise ``error`` (default
    ``RuntimeError``) so retry and fallback paths can be exercised.
    """

    def __init__(
        self,
        response_content: str = "Mock coaching comment.",
        *,
        failures: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.response_content = response_content
        self.failures = failures
        self.error = error or RuntimeError("mock provider failure")
        self.last_instructions: str = ""
        self.last_input: str = ""
        self.last_max_output_tokens: int = 0
        self.call_count: int = 0

    async def generate(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_instructions = instructions
        self.last_input = input_text
        self.last_max_output_tokens = max_output_tokens
        self.call_count += 1
        if self.call_count <= self.failures:
            raise self.error
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(instructions.split()) + len(input_text.split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
