"""Base system prompt for the coaching model."""

from __future__ import annotations

from healthcoach.core.narrative.models import NarrativeTemplate

COACH_SYSTEM_PROMPT = """\
You are the coaching voice of a personal blood pressure and blood sugar \
tracker. You receive a short structured summary of one person's recent \
readings and write a brief, friendly comment about it.

## Core Principles

1. **Data-first**: Only talk about the numbers in the summary. If a section \
says no data is available, say so instead of guessing.

2. **Plain language**: The reader is not a clinician. Keep sentences short and \
explain any technical term you use.

3. **Not medical advice**: You are not a physician. Never diagnose, never \
name or adjust medications, and always point the reader to a medical \
professional for decisions about their health.
"""


def build_instructions(template: NarrativeTemplate) -> str:
    """Combine the base prompt with a template's framing and prohibited actions."""
    parts = [COACH_SYSTEM_PROMPT]
    if template.framing.role:
        parts.append(template.framing.role)
    if template.framing.tone:
        parts.append(template.framing.tone)
    if template.guardrails.prohibited_actions:
        parts.append(
            "Never do any of the following:\n"
            + "\n".join(f"- {action}" for action in template.guardrails.prohibited_actions)
        )
    return "\n\n---\n\n".join(parts)
