"""Guardrail enforcement for generated coaching text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from healthcoach.core.narrative.models import NarrativeTemplate

logger = logging.getLogger(__name__)

# Templates list prohibited actions in natural language, so detection looks
# for common phrasings rather than parsing each action string.
PROHIBITED_INDICATORS: dict[str, tuple[str, ...]] = {
    "making medical diagnoses": (
        "you have been diagnosed",
        "you are suffering from",
        "you have hypertension",
        "you have diabetes",
        "you have a condition",
    ),
    "prescribing or changing medication": (
        "take this medication",
        "stop taking your medication",
        "increase your dose",
        "reduce your dose",
        "i prescribe",
    ),
    "asserting that a habit causes a blood pressure change": (
        "is causing your blood pressure",
        "causes your blood pressure",
        "is the cause of your",
        "because of your lack of sleep",
    ),
}

REDACTION = "[Removed: contains prohibited health guidance]"


@dataclass
class GuardrailCheck:
    """Result of checking generated text against a template's guardrails."""

    passed: bool
    flags: list[str] = field(default_factory=list)
    matched_phrases: list[str] = field(default_factory=list)


def check_guardrails(content: str, template: NarrativeTemplate) -> GuardrailCheck:
    """Flag phrases that break one of the template's prohibited actions."""
    content_lower = content.lower()
    flags: list[str] = []
    matched: list[str] = []

    for action in template.guardrails.prohibited_actions:
        for pattern in PROHIBITED_INDICATORS.get(action, ()):
            if pattern in content_lower:
                flags.append(f"prohibited_pattern_detected: {action} ('{pattern}')")
                matched.append(pattern)

    if flags:
        logger.warning("Guardrail flags for template %s: %s", template.id, flags)
    return GuardrailCheck(passed=not flags, flags=flags, matched_phrases=matched)


def sanitize_content(content: str, check: GuardrailCheck) -> str:
    """Replace every sentence containing a flagged phrase with a redaction note."""
    if check.passed:
        return content

    sanitized = content
    for phrase in check.matched_phrases:
        pattern = re.compile(
            r"[^.!?\n]*" + re.escape(phrase) + r"[^.!?\n]*[.!?]?",
            re.IGNORECASE,
        )
        sanitized = pattern.sub(REDACTION, sanitized)
    return sanitized


def enforce_disclaimers(content: str, template: NarrativeTemplate) -> tuple[str, list[str]]:
    """Append any template disclaimer the generated text left out.

    Returns: (possibly modified content, flags)
    """
    disclaimers = [d.strip() for d in template.guardrails.disclaimers if d.strip()]
    if not disclaimers:
        return content, []

    def _norm(s: str) -> str:
        return " ".join(s.lower().split())

    content_norm = _norm(content)
    missing = [d for d in disclaimers if _norm(d) not in content_norm]
    if not missing:
        return content, []

    footer = "\n\n" + "\n".join(missing)
    return content + footer, [f"disclaimer_appended: {d}" for d in missing]


def apply_guardrails(content: str, template: NarrativeTemplate) -> tuple[str, list[str]]:
    """Sanitize and add disclaimers in one step. Returns (content, flags)."""
    check = check_guardrails(content, template)
    content = sanitize_content(content, check)
    content, disclaimer_flags = enforce_disclaimers(content, template)
    return content, check.flags + disclaimer_flags
