"""Narrative template registry: in-memory index of loaded templates."""

from __future__ import annotations

import logging

from healthcoach.core.narrative.models import NarrativeTemplate

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """In-memory registry of all loaded narrative templates."""

    def __init__(self) -> None:
        self._templates: dict[str, NarrativeTemplate] = {}

    def register(self, template: NarrativeTemplate) -> None:
        if template.id in self._templates:
            raise ValueError(f"Duplicate narrative template id registered: {template.id!r}")
        self._templates[template.id] = template

    def get(self, template_id: str) -> NarrativeTemplate | None:
        return self._templates.get(template_id)

    def require(self, template_id: str) -> NarrativeTemplate:
        """Look up a template that the service cannot run without."""
        template = self._templates.get(template_id)
        if template is None:
            raise LookupError(f"Narrative template not loaded: {template_id!r}")
        return template

    def all(self) -> list[NarrativeTemplate]:
        return list(self._templates.values())
