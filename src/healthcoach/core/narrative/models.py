"""Data models for narrative templates."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NarrativeFraming:
    """How the text-generation model is asked to speak."""

    role: str = ""
    tone: str = ""


@dataclass
class NarrativeGuardrails:
    """Safety boundaries applied to generated text."""

    disclaimers: list[str] = field(default_factory=list)
    prohibited_actions: list[str] = field(default_factory=list)


@dataclass
class GroupTable:
    """Heading and row labels for one covariate comparison table."""

    heading: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class NarrativeTemplate:
    """The fixed wording of one narrative variant.

    ``version`` is the contract version of the composed output: any change
    to wording or line order bumps it.
    """

    id: str
    version: str
    display_name: str
    description: str
    framing: NarrativeFraming
    guardrails: NarrativeGuardrails
    phrases: dict[str, str] = field(default_factory=dict)
    tables: dict[str, GroupTable] = field(default_factory=dict)
    guidance: list[str] = field(default_factory=list)
    fallback_message: str = ""
    tags: list[str] = field(default_factory=list)

    def phrase(self, key: str, **values: object) -> str:
        """Render a phrase, filling ``{placeholders}`` from ``values``."""
        try:
            template = self.phrases[key]
        except KeyError:
            raise KeyError(f"Narrative template {self.id!r} has no phrase {key!r}") from None
        return template.format(**values)
