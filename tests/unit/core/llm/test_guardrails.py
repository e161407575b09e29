"""Tests for guardrail checks on generated coaching text."""

from __future__ import annotations

import pytest

from healthcoach.core.llm.response import (
    REDACTION,
    apply_guardrails,
    check_guardrails,
    enforce_disclaimers,
    sanitize_content,
)
from healthcoach.core.llm.system_prompt import COACH_SYSTEM_PROMPT, build_instructions


@pytest.fixture
def coaching(templates):
    return templates.require("coaching")


class TestCheckGuardrails:
    def test_clean_text_passes(self, coaching):
        check = check_guardrails("Your readings look steady. Keep walking after dinner.", coaching)
        assert check.passed
        assert check.flags == []

    def test_diagnosis_is_flagged(self, coaching):
        check = check_guardrails("Based on this, you have hypertension.", coaching)
        assert not check.passed
        assert "making medical diagnoses" in check.flags[0]

    def test_only_the_templates_actions_are_checked(self, templates):
        # The causal-claim rule belongs to the lifestyle template only.
        text = "Poor sleep is causing your blood pressure to rise."
        assert check_guardrails(text, templates.require("coaching")).passed
        assert not check_guardrails(text, templates.require("lifestyle")).passed


class TestSanitize:
    def test_flagged_sentence_is_redacted(self, coaching):
        text = "Good trend overall. You should stop taking your medication now. Keep it up."
        check = check_guardrails(text, coaching)
        sanitized = sanitize_content(text, check)
        assert REDACTION in sanitized
        assert "medication" not in sanitized
        assert sanitized.startswith("Good trend overall.")


class TestDisclaimers:
    def test_missing_disclaimer_is_appended(self, coaching):
        content, flags = enforce_disclaimers("Keep walking.", coaching)
        assert content.endswith(coaching.guardrails.disclaimers[0])
        assert len(flags) == 1

    def test_present_disclaimer_not_duplicated(self, coaching):
        text = "Keep walking. " + coaching.guardrails.disclaimers[0].upper()
        content, flags = enforce_disclaimers(text, coaching)
        assert content == text
        assert flags == []

    def test_apply_guardrails_combines_flags(self, coaching):
        content, flags = apply_guardrails("You have diabetes.", coaching)
        assert REDACTION in content
        assert any(f.startswith("prohibited_pattern_detected") for f in flags)
        assert any(f.startswith("disclaimer_appended") for f in flags)


class TestInstructions:
    def test_instructions_include_framing_and_prohibitions(self, coaching):
        instructions = build_instructions(coaching)
        assert instructions.startswith(COACH_SYSTEM_PROMPT)
        assert coaching.framing.role in instructions
        assert "- making medical diagnoses" in instructions
