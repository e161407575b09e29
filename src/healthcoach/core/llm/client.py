"""Narrative generator connecting composed prompt lines and a provider.

Each call is bounded by a timeout, retried a limited number of times with
``tenacity``, and guarded by a small circuit breaker. Every failure mode
surfaces as :class:`UpstreamGenerationError`; choosing a fallback message is
the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from healthcoach.core.errors import UpstreamGenerationError
from healthcoach.core.llm.provider import LLMProvider, ProviderResponse

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Opens after ``threshold`` consecutive failed generations.

    While open, calls fail fast until ``cooldown_seconds`` have passed; the
    next call after that is let through as a trial. A threshold of 0
    disables the breaker.
    """

    def __init__(
        self,
        threshold: int = 3,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def is_open(self) -> bool:
        if self._opened_at is None:
            return False
        if self._clock() - self._opened_at >= self.cooldown_seconds:
            return False
        return True

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self.threshold and self._failures >= self.threshold:
            self._opened_at = self._clock()
            logger.warning(
                "Generation circuit opened after %d consecutive failures", self._failures
            )


class NarrativeGenerator:
    """Calls the text-generation provider with timeout, retry and breaker."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        provider_name: str = "mock",
        timeout_seconds: float = 30.0,
        max_retries: int = 1,
        retry_wait_seconds: float = 1.0,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.provider = provider
        self.provider_name = provider_name
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(max_retries, 0)
        self.retry_wait_seconds = retry_wait_seconds
        self.breaker = breaker or CircuitBreaker()

    async def generate(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
    ) -> str:
        """Generate text for a composed prompt.

        Raises:
            UpstreamGenerationError: On timeout, provider error or empty
                output once retries are exhausted, or immediately while the
                circuit is open.
        """
        if self.breaker.is_open:
            raise UpstreamGenerationError("Text generation temporarily disabled (circuit open)")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=10),
            retry=retry_if_exception_type(UpstreamGenerationError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._attempt(
                        instructions, input_text, max_output_tokens, temperature
                    )
        except UpstreamGenerationError:
            self.breaker.record_failure()
            raise

        self.breaker.record_success()
        logger.info(
            "Generation call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )
        return response.content.strip()

    async def _attempt(
        self,
        instructions: str,
        input_text: str,
        max_output_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    instructions=instructions,
                    input_text=input_text,
                    max_output_tokens=max_output_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Generation attempt timed out after %.1fs", self.timeout_seconds)
            raise UpstreamGenerationError(
                f"Text generation timed out after {self.timeout_seconds:g} seconds"
            ) from exc
        except Exception as exc:
            # SDK errors have no common base class; normalize them here.
            logger.warning("Generation attempt failed: %s", type(exc).__name__)
            raise UpstreamGenerationError(
                f"Text generation failed: {type(exc).__name__}: {exc}"
            ) from exc

        if not response.content or not response.content.strip():
            logger.warning("Generation attempt returned no text")
            raise UpstreamGenerationError("Text generation returned no usable text")
        return response
