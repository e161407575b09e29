"""Tests for NarrativeGenerator: timeout, retry, circuit breaker, empty output."""

from __future__ import annotations

import asyncio

import pytest

from healthcoach.core.errors import UpstreamGenerationError
from healthcoach.core.llm.client import CircuitBreaker, NarrativeGenerator
from healthcoach.core.llm.provider import ProviderResponse, create_provider
from healthcoach.core.llm.providers.mock import MockProvider


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _generator(provider, **kwargs) -> NarrativeGenerator:
    kwargs.setdefault("retry_wait_seconds", 0)
    kwargs.setdefault("timeout_seconds", 1.0)
    return NarrativeGenerator(provider, **kwargs)


class _SlowProvider:
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.call_count = 0

    async def generate(self, instructions, input_text, max_output_tokens=800, temperature=0.3):
        self.call_count += 1
        await asyncio.sleep(self.delay)
        return ProviderResponse("late", 1, 1, "slow", self.delay * 1000)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestGenerate:
    def test_returns_stripped_text_and_passes_prompt(self):
        provider = MockProvider("  Nice work this week.  ")
        text = _run(_generator(provider).generate("be kind", "line 1\nline 2", max_output_tokens=321))
        assert text == "Nice work this week."
        assert provider.last_instructions == "be kind"
        assert provider.last_input == "line 1\nline 2"
        assert provider.last_max_output_tokens == 321

    def test_single_retry_recovers(self):
        provider = MockProvider("ok", failures=1)
        assert _run(_generator(provider, max_retries=1).generate("i", "x")) == "ok"
        assert provider.call_count == 2

    def test_retries_exhausted_raises(self):
        provider = MockProvider("ok", failures=5)
        with pytest.raises(UpstreamGenerationError, match="RuntimeError"):
            _run(_generator(provider, max_retries=1).generate("i", "x"))
        assert provider.call_count == 2

    def test_zero_retries_means_one_attempt(self):
        provider = MockProvider("ok", failures=1)
        with pytest.raises(UpstreamGenerationError):
            _run(_generator(provider, max_retries=0).generate("i", "x"))
        assert provider.call_count == 1

    def test_empty_output_is_an_error(self):
        provider = MockProvider("   ")
        with pytest.raises(UpstreamGenerationError, match="no usable text"):
            _run(_generator(provider, max_retries=0).generate("i", "x"))

    def test_timeout(self):
        provider = _SlowProvider(delay=0.5)
        generator = _generator(provider, timeout_seconds=0.01, max_retries=0)
        with pytest.raises(UpstreamGenerationError, match="timed out"):
            _run(generator.generate("i", "x"))


class TestCircuitBreaker:
    def test_opens_after_threshold_and_fails_fast(self):
        provider = MockProvider("ok", failures=100)
        clock = _FakeClock()
        generator = _generator(
            provider,
            max_retries=0,
            breaker=CircuitBreaker(threshold=2, cooldown_seconds=60, clock=clock),
        )
        for _ in range(2):
            with pytest.raises(UpstreamGenerationError):
                _run(generator.generate("i", "x"))
        assert generator.breaker.is_open

        with pytest.raises(UpstreamGenerationError, match="circuit open"):
            _run(generator.generate("i", "x"))
        assert provider.call_count == 2

    def test_trial_call_after_cooldown_closes_breaker(self):
        provider = MockProvider("ok", failures=2)
        clock = _FakeClock()
        generator = _generator(
            provider,
            max_retries=0,
            breaker=CircuitBreaker(threshold=2, cooldown_seconds=60, clock=clock),
        )
        for _ in range(2):
            with pytest.raises(UpstreamGenerationError):
                _run(generator.generate("i", "x"))

        clock.now = 61.0
        assert not generator.breaker.is_open
        assert _run(generator.generate("i", "x")) == "ok"
        assert not generator.breaker.is_open

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(threshold=2)
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        assert not breaker.is_open

    def test_zero_threshold_disables_breaker(self):
        breaker = CircuitBreaker(threshold=0)
        for _ in range(10):
            breaker.record_failure()
        assert not breaker.is_open


class TestCreateProvider:
    def test_mock_provider(self):
        assert isinstance(create_provider("mock"), MockProvider)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_provider("carrier-pigeon")
